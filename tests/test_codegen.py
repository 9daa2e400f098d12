import pytest

from avr_tool.timer.codegen import CS_BITS, TIMER_NAMES, cs_expression, generate_code
from avr_tool.timer.solver import PRESCALERS, TimerRequest, solve


@pytest.mark.parametrize("bits", [8, 16])
def test_cs_table_covers_every_prescaler(bits):
    assert sorted(p for (w, p) in CS_BITS if w == bits) == sorted(PRESCALERS)


@pytest.mark.parametrize("prescaler,suffixes", [
    (1, ["0"]),
    (8, ["1"]),
    (64, ["1", "0"]),
    (256, ["2"]),
    (1024, ["2", "0"]),
])
def test_cs_bit_pattern(prescaler, suffixes):
    assert CS_BITS[(16, prescaler)] == tuple(f"CS1{s}" for s in suffixes)
    assert CS_BITS[(8, prescaler)] == tuple(f"CS0{s}" for s in suffixes)


def test_cs_expression():
    assert cs_expression(16, 1024) == "(1 << CS12) | (1 << CS10)"
    assert cs_expression(8, 8) == "(1 << CS01)"


def test_16bit_block():
    code = generate_code(16, 1024, 15)
    assert "TCCR1A = 0;" in code
    assert "TCCR1B = 0;" in code
    assert "TCCR1B |= (1 << WGM12);" in code
    assert "TCCR1B |= (1 << CS12) | (1 << CS10);" in code
    assert "OCR1A = 15;" in code
    assert "TIMSK1 |= (1 << OCIE1A);" in code
    assert "ISR(TIMER1_COMPA_vect) {" in code
    assert "Target: 16 ticks @ Prescaler 1024" in code


def test_8bit_block():
    code = generate_code(8, 64, 249)
    assert "TCCR0A |= (1 << WGM01);" in code
    assert "TCCR0B |= (1 << CS01) | (1 << CS00);" in code
    assert "OCR0A = 249;" in code
    assert "ISR(TIMER0_COMPA_vect)" in code
    assert "CS1" not in code


def test_solver_attaches_code():
    results = {r.prescaler: r for r in solve(TimerRequest(16_000_000, 0.001, 8))}
    assert results[64].code == generate_code(8, 64, 249)
    assert results[1].code.startswith("// Configuration requires software counter")


def test_names_per_width():
    assert TIMER_NAMES[8].timer == "0"
    assert TIMER_NAMES[16].timer == "1"
