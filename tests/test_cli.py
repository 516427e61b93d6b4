import pytest
import structlog

from stackvm.cli import main, parse_args, parse_code
from stackvm.config import VMConfig


@pytest.fixture(autouse=True)
def captured_logs(monkeypatch):
    """Keep host logging out of stdout and away from the global structlog config."""
    for name in (
        "STACKVM_STACK_CAPACITY",
        "STACKVM_LOCALS_SIZE",
        "STACKVM_MAX_STEPS",
        "STACKVM_TRACE",
        "STACKVM_LOG_LEVEL",
        "STACKVM_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    with structlog.testing.capture_logs() as logs:
        yield logs


def test_parse_code():
    assert parse_code("11 2 11 3 1 16 18") == [11, 2, 11, 3, 1, 16, 18]
    assert parse_code("11, -3,0x12") == [11, -3, 18]
    with pytest.raises(ValueError):
        parse_code("  ")
    with pytest.raises(ValueError):
        parse_code("11 two")


def test_parse_args_defaults_to_fibonacci():
    args = parse_args([], VMConfig())
    assert args.entry == 38
    assert args.program[39] == 6
    assert args.stack_capacity == 100
    assert args.max_steps is None


def test_parse_args_uses_config_defaults():
    args = parse_args(["--fib", "3"], VMConfig(stack_capacity=20, max_steps=50, trace=True))
    assert args.program[39] == 3
    assert args.stack_capacity == 20
    assert args.max_steps == 50
    assert args.trace is True


def test_parse_args_rejects_bad_input():
    with pytest.raises(SystemExit):
        parse_args(["--fib", "3", "--code", "18"], VMConfig())
    with pytest.raises(SystemExit):
        parse_args(["--entry", "2"], VMConfig())
    with pytest.raises(SystemExit):
        parse_args(["--code", "18", "--stack-capacity", "-1"], VMConfig())
    with pytest.raises(SystemExit):
        parse_args(["--code", "not code"], VMConfig())


def test_main_runs_fibonacci_demo(capsys):
    assert main([]) == 0
    assert capsys.readouterr().out == "8\n"


def test_main_runs_inline_code(capsys, captured_logs):
    assert main(["--code", "11 2 11 3 1 16 18"]) == 0
    assert capsys.readouterr().out == "5\n"
    events = [entry["event"] for entry in captured_logs]
    assert "Running program" in events
    assert "Program halted" in events


def test_main_entry_offset(capsys):
    assert main(["--code", "18 11 7 16 18", "--entry", "1"]) == 0
    assert capsys.readouterr().out == "7\n"


def test_main_show_stack(capsys):
    assert main(["--code", "11 2 11 3 1 18", "--show-stack"]) == 0
    assert capsys.readouterr().out == "<1> 5\n"


def test_main_reports_fault(capsys, captured_logs):
    assert main(["--code", "17 18"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "StackUnderflow at pc 0" in captured.err

    errors = [entry for entry in captured_logs if entry["log_level"] == "error"]
    assert len(errors) == 1
    assert errors[0]["fault"] == "StackUnderflow"


def test_main_step_budget(capsys):
    assert main(["--code", "8 0", "--max-steps", "25"]) == 1
    assert "StepLimitExceeded" in capsys.readouterr().err


def test_main_small_stack_overflows(capsys):
    assert main(["--fib", "10", "--stack-capacity", "8"]) == 1
    assert "StackOverflow" in capsys.readouterr().err


def test_main_disassemble(capsys):
    assert main(["--code", "11 2 11 3 1 16 18", "--disassemble"]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "0: CONST 2",
        "2: CONST 3",
        "4: ADD",
        "5: PRINT",
        "6: HALT",
    ]


def test_main_trace(capsys, captured_logs):
    assert main(["--code", "11 1 16 18", "--trace"]) == 0
    assert capsys.readouterr().out == "1\n"
    traced = [entry["op"] for entry in captured_logs if entry["event"] == "Executing instruction"]
    assert traced == ["CONST", "PRINT", "HALT"]


def test_main_environment_config(monkeypatch, capsys):
    monkeypatch.setenv("STACKVM_MAX_STEPS", "3")
    assert main(["--code", "8 0"]) == 1
    assert "StepLimitExceeded" in capsys.readouterr().err


def test_main_invalid_environment(monkeypatch, capsys):
    monkeypatch.setenv("STACKVM_STACK_CAPACITY", "huge")
    assert main([]) == 2
    assert "STACKVM_STACK_CAPACITY" in capsys.readouterr().err
