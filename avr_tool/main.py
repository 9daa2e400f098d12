from __future__ import annotations
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer
from rich import print
from rich.table import Table
from serial.tools import list_ports

from .config import APP_NAME, DEFAULT_BIT_CLOCK, DEFAULT_F_CPU, DEFAULT_PORT, LOG_FILE
from .errors import AvrToolError
from .fuses.codec import decode, describe, encode, format_byte, parse_byte, parse_field_value
from .fuses.device import Device, find_device, list_devices
from .fuses.model import FieldKind, Register
from .programmer.avrdude import format_command, parse_read_output, read_args, write_args
from .programmer.project import CONFIG_NAME, HardwareConfig, is_project, load_project_config
from .timer.solver import TimerRequest, best_result, solve

app = typer.Typer(add_completion=False, help=f"{APP_NAME}: fuse calculator, timer calculator, avrdude commands.")


def _log_event(kind: str, payload: dict):
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "kind": kind,
        "payload": payload,
    }
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def _fail(msg: str, code: int = 2):
    print(f"[red]{msg}[/]")
    raise typer.Exit(code=code)


def _device(name: str) -> Device:
    try:
        return find_device(name)
    except KeyError as e:
        _fail(e.args[0])
    except AvrToolError as e:
        _fail(f"Broken device description: {e}")


def _register(dev: Device, name: str) -> Register:
    try:
        return dev.register(name)
    except KeyError as e:
        _fail(e.args[0])


def _project(path: Optional[Path]):
    if path is None:
        path = Path.cwd() / CONFIG_NAME
        if not path.exists():
            return None
        if not is_project(path.parent):
            print(f"[yellow]{path} is not an Atmel project config, using it anyway.[/]")
    try:
        return load_project_config(path)
    except (OSError, ValueError) as e:
        _fail(f"Project config: {e}")


def _register_table(reg: Register, value: int) -> Table:
    decoded = decode(value, reg.fields)
    table = Table(title=f"{reg.name} = {format_byte(value)} (default {format_byte(reg.default)})")
    table.add_column("Field", style="cyan")
    table.add_column("Mask")
    table.add_column("Value")
    for f in reg.sorted_fields():
        shown = describe(decoded[f.name])
        if f.kind is FieldKind.BOOLEAN:
            shown = f"[green]{shown}[/]" if decoded[f.name] else shown
        table.add_row(f.name, f"0x{f.mask:02X}", shown)
    return table


@app.command()
def devices():
    """Show bundled device descriptions."""
    for dev in list_devices():
        regs = ", ".join(r.name for r in dev.registers)
        print(f"[cyan]{dev.name}[/] ({dev.partno}) - {regs}")


@app.command("fuse-show")
def fuse_show(device: str = typer.Argument(..., help="e.g. atmega328p or m328p")):
    """Show all fuse registers of a device with their default values."""
    dev = _device(device)
    print(f"[bold]{dev.name}[/]")
    for reg in dev.registers:
        print(_register_table(reg, reg.default))


@app.command("fuse-decode")
def fuse_decode(
    device: str = typer.Argument(..., help="e.g. atmega328p"),
    register: str = typer.Argument(..., help="LOW, HIGH, EXTENDED or LOCKBIT"),
    value: Optional[str] = typer.Argument(None, help="Register byte in hex, e.g. 0xE2"),
    from_file: Optional[Path] = typer.Option(
        None, help="Read the byte from avrdude output saved with -U lfuse:r:FILE:h"
    ),
):
    """Split a fuse byte into its bitfields."""
    dev = _device(device)
    reg = _register(dev, register)
    if from_file is None and value is None:
        _fail("Give a register VALUE or --from-file.")
    try:
        if from_file is not None:
            byte = parse_read_output(reg.name, from_file.read_text(encoding="utf-8"))
        else:
            byte = parse_byte(value)
    except (OSError, ValueError) as e:
        _fail(str(e))
    print(_register_table(reg, byte))
    decoded = decode(byte, reg.fields)
    _log_event("fuse_decode", {
        "device": dev.name,
        "register": reg.name,
        "value": format_byte(byte),
        "fields": {k: describe(v) for k, v in decoded.items()},
    })


@app.command("fuse-encode")
def fuse_encode(
    device: str = typer.Argument(..., help="e.g. atmega328p"),
    register: str = typer.Argument(..., help="LOW, HIGH, EXTENDED or LOCKBIT"),
    assignments: List[str] = typer.Option(None, "--set", "-s", help="FIELD=VALUE, e.g. CKDIV8=off or SUT_CKSEL=0x3F"),
    base: Optional[str] = typer.Option(None, help="Start from this byte instead of the register default"),
):
    """Build a fuse byte from field values."""
    dev = _device(device)
    reg = _register(dev, register)
    try:
        start = parse_byte(base) if base else reg.default
        values = {}
        for item in assignments or []:
            if "=" not in item:
                _fail(f"Expected FIELD=VALUE, got {item!r}")
            name, text = item.split("=", 1)
            name = name.strip().upper()
            values[name] = parse_field_value(reg.field(name), text)
        result = encode(reg.fields, start, values)
    except KeyError as e:
        _fail(e.args[0])
    except ValueError as e:
        # InvalidFieldValue included
        _fail(str(e))

    print(_register_table(reg, result))
    print(f"[bold green]{reg.name}:[/] {format_byte(result)}")
    _log_event("fuse_encode", {
        "device": dev.name,
        "register": reg.name,
        "base": format_byte(start),
        "set": assignments or [],
        "value": format_byte(result),
    })


@app.command("fuse-cmd")
def fuse_cmd(
    device: str = typer.Argument(..., help="e.g. atmega328p"),
    fuses: List[str] = typer.Option(None, "--fuse", "-f", help="REGISTER=BYTE, e.g. LOW=0xFF"),
    read: bool = typer.Option(False, help="Print read commands instead of a write command"),
    programmer: Optional[str] = typer.Option(None, help="avrdude -c value, e.g. usbasp"),
    port: Optional[str] = typer.Option(None, help="avrdude -P value"),
    bit_clock: Optional[str] = typer.Option(None, help="avrdude -B value"),
    project: Optional[Path] = typer.Option(None, help="Project config.json (default: ./config.json)"),
    dry_run: bool = typer.Option(True, help="Add -n so avrdude does not write to the chip"),
):
    """Print the avrdude command that reads or programs the fuses."""
    dev = _device(device)
    proj = _project(project)

    prog = programmer or (proj.programmer if proj else None)
    if not prog:
        _fail("Specify --programmer or a project config.json.")
    config = HardwareConfig(
        programmer=prog,
        partno=proj.partno if proj else dev.partno,
        port=port or (proj.port if proj else None) or DEFAULT_PORT,
        bit_clock=bit_clock or (proj.bit_clock if proj else None) or DEFAULT_BIT_CLOCK,
        cwd=proj.cwd if proj else ".",
    )

    if read:
        for reg in dev.registers:
            typer.echo(format_command(read_args(config, reg.name)))
        return

    values = {}
    try:
        for item in fuses or []:
            if "=" not in item:
                _fail(f"Expected REGISTER=BYTE, got {item!r}")
            name, text = item.split("=", 1)
            values[_register(dev, name.strip()).name] = parse_byte(text)
        argv = write_args(config, values, dry_run=dry_run)
    except ValueError as e:
        _fail(str(e))

    cmd = format_command(argv)
    typer.echo(cmd)
    _log_event("fuse_cmd", {"device": dev.name, "values": {k: format_byte(v) for k, v in values.items()}, "cmd": cmd})


@app.command()
def timer(
    target: float = typer.Argument(..., help="Interval in seconds, e.g. 0.001"),
    f_cpu: Optional[float] = typer.Option(
        None, "--f-cpu", help="CPU clock in Hz (default: project cpu_freq, then device clock, then 16 MHz)"
    ),
    device: Optional[str] = typer.Option(None, help="Take the default clock from this device, e.g. attiny85"),
    bits: int = typer.Option(16, help="Timer width: 8 or 16"),
    code: bool = typer.Option(False, help="Print the register setup for the best prescaler"),
    prescaler: Optional[int] = typer.Option(None, help="Print the register setup for this prescaler"),
    project: Optional[Path] = typer.Option(None, help="Project config.json (default: ./config.json)"),
):
    """Find compare value and prescaler for a CTC timer interval."""
    if f_cpu is None:
        proj = _project(project)
        dev = _device(device) if device else None
        f_cpu = (proj.cpu_freq if proj else None) or (dev.f_cpu if dev else None) or DEFAULT_F_CPU

    try:
        results = solve(TimerRequest(cpu_frequency_hz=f_cpu, target_seconds=target, counter_width_bits=bits))
    except AvrToolError as e:
        _fail(str(e))

    best = best_result(results)
    table = Table(title=f"Timer {bits}-bit @ {f_cpu / 1e6:g} MHz, target {target:g} s")
    for col in ("Prescaler", "Ticks", "Overflows", "Remainder", "OCR", "Real time, s", "Error %"):
        table.add_column(col, justify="right")
    for r in results:
        style = "bold green" if r is best else (None if r.feasible else "dim")
        table.add_row(
            str(r.prescaler),
            str(r.total_ticks),
            str(r.overflow_count),
            str(r.remainder_ticks),
            str(r.compare_value) if r.feasible else "N/A",
            f"{r.achieved_seconds:.6f}",
            f"{abs(r.error_percent):.4f}",
            style=style,
        )
    print(table)

    if best is None:
        print("[yellow]No prescaler fits a single timer cycle.[/]")

    _log_event("timer", {
        "f_cpu": f_cpu,
        "target": target,
        "bits": bits,
        "best": best.prescaler if best else None,
    })

    if prescaler is not None:
        chosen = next((r for r in results if r.prescaler == prescaler), None)
        if chosen is None:
            _fail(f"Unsupported prescaler {prescaler}")
        typer.echo(chosen.code)
    elif code and best is not None:
        typer.echo(best.code)


@app.command()
def ports():
    """Show available serial ports (for the programmer -P option)."""
    found = list_ports.comports()
    if not found:
        print("[yellow]No ports found.[/]")
        return
    for p in found:
        print(f"[cyan]{p.device}[/] - {p.description}")


if __name__ == "__main__":
    app()
