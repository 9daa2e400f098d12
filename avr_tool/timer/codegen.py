# timer/codegen.py
"""CTC register setup text for ATmega328P-style timers (timer 0 = 8 bit, timer 1 = 16 bit)."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class TimerNames:
    timer: str
    tccra: str
    tccrb: str
    ocr: str
    timsk: str
    ocie: str
    wgm_reg: str  # register holding the CTC mode bit
    wgm_bit: str
    vector: str


TIMER_NAMES: Dict[int, TimerNames] = {
    8: TimerNames(
        timer="0", tccra="TCCR0A", tccrb="TCCR0B", ocr="OCR0A", timsk="TIMSK0",
        ocie="OCIE0A", wgm_reg="TCCR0A", wgm_bit="WGM01", vector="TIMER0_COMPA_vect",
    ),
    16: TimerNames(
        timer="1", tccra="TCCR1A", tccrb="TCCR1B", ocr="OCR1A", timsk="TIMSK1",
        ocie="OCIE1A", wgm_reg="TCCR1B", wgm_bit="WGM12", vector="TIMER1_COMPA_vect",
    ),
}

# clock select bits per (counter width, prescaler)
CS_BITS: Dict[Tuple[int, int], Tuple[str, ...]] = {
    (16, 1): ("CS10",),
    (16, 8): ("CS11",),
    (16, 64): ("CS11", "CS10"),
    (16, 256): ("CS12",),
    (16, 1024): ("CS12", "CS10"),
    (8, 1): ("CS00",),
    (8, 8): ("CS01",),
    (8, 64): ("CS01", "CS00"),
    (8, 256): ("CS02",),
    (8, 1024): ("CS02", "CS00"),
}

INFEASIBLE_CODE = (
    "// Configuration requires software counter or larger prescaler.\n"
    "// Hardware timer cannot handle this duration in a single cycle."
)


def cs_expression(bits: int, prescaler: int) -> str:
    return " | ".join(f"(1 << {b})" for b in CS_BITS[(bits, prescaler)])


def generate_code(bits: int, prescaler: int, compare_value: int) -> str:
    n = TIMER_NAMES[bits]
    return f"""/*
 * Timer {n.timer} Configuration (CTC Mode)
 * Target: {compare_value + 1} ticks @ Prescaler {prescaler}
 * CAUTION: Register names ({n.tccra}, etc.) follow ATmega328P standard.
 * Check your specific MCU datasheet if registers differ (e.g. ATtiny).
 */

// 1. Reset Control Registers
{n.tccra} = 0;
{n.tccrb} = 0;

// 2. Set CTC Mode (Clear Timer on Compare Match)
{n.wgm_reg} |= (1 << {n.wgm_bit});

// 3. Set Prescaler to {prescaler}
{n.tccrb} |= {cs_expression(bits, prescaler)};

// 4. Set Compare Match Value
{n.ocr} = {compare_value};

// 5. Enable Compare Match Interrupt
{n.timsk} |= (1 << {n.ocie});

// --- Interrupt Service Routine ---
ISR({n.vector}) {{
    // periodic code goes here
}}"""
