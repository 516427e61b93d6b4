#!/usr/bin/env python3
"""
Command-line host for the stack machine.

Runs the built-in Fibonacci demonstration or an instruction stream given
inline on the command line, writes PRINT output to stdout and reports the
terminal state. Exit status is 0 on HALT and 1 on a fault.

Examples:
    python -m stackvm                       # fib(6), prints 8
    python -m stackvm --fib 10
    python -m stackvm --code "11 2 11 3 1 16 18"
    python -m stackvm --fib 6 --disassemble
"""

import argparse
import logging
import re
import sys
from typing import List, Optional

import structlog
from structlog.stdlib import LoggerFactory

from .config import LOG_FORMATS, LOG_LEVELS, VMConfig
from .core.interpreter import run_program
from .core.opcodes import disassemble, format_instruction
from .programs import fibonacci_program

logger = structlog.get_logger()


def configure_logging(log_level: str = "WARNING", log_format: str = "console"):
    """Configure structured logging"""
    # Check if already configured
    if structlog.is_configured():
        return

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.WARNING),
        stream=sys.stderr,  # stdout carries program output
        force=True,
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logger.debug("Logging configured", log_level=log_level, log_format=log_format)


def parse_code(text: str) -> List[int]:
    """Parse a comma/whitespace separated list of integers (decimal or 0x hex)."""
    tokens = [tok for tok in re.split(r"[,\s]+", text.strip()) if tok]
    if not tokens:
        raise ValueError("instruction stream is empty")
    return [int(tok, 0) for tok in tokens]


def parse_args(argv: Optional[List[str]] = None, config: Optional[VMConfig] = None):
    """Parse command line arguments"""
    config = config or VMConfig.from_env()
    parser = argparse.ArgumentParser(
        prog="stackvm", description="Run bytecode on the stack-based interpreter"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--fib", type=int, metavar="N", help="Run the built-in recursive Fibonacci demo with argument N (default: 6)")
    source.add_argument("--code", help="Instruction stream as integers, e.g. \"11 2 11 3 1 16 18\"")
    parser.add_argument("--entry", type=int, default=None, help="Entry offset for --code (default: 0)")
    parser.add_argument("--disassemble", action="store_true", help="Print a listing of the program and exit")
    parser.add_argument("--stack-capacity", type=int, default=config.stack_capacity, help=f"Operand stack slots (default: {config.stack_capacity})")
    parser.add_argument("--locals-size", type=int, default=config.locals_size, help=f"Global locals region slots (default: {config.locals_size})")
    parser.add_argument("--max-steps", type=int, default=config.max_steps, help="Abort after this many instructions (default: unlimited)")
    parser.add_argument("--trace", action="store_true", default=config.trace, help="Log every executed instruction at DEBUG level")
    parser.add_argument("--show-stack", action="store_true", help="Print the residual operand stack after the run")
    parser.add_argument("--log-level", default=config.log_level, type=str.upper, choices=LOG_LEVELS, help=f"Logging level (default: {config.log_level})")
    parser.add_argument("--log-format", default=config.log_format, choices=LOG_FORMATS, help=f"Log renderer (default: {config.log_format})")

    args = parser.parse_args(argv)

    if args.code is not None:
        try:
            args.program = parse_code(args.code)
        except ValueError as e:
            parser.error(f"--code: {e}")
        args.entry = 0 if args.entry is None else args.entry
    else:
        if args.entry is not None:
            parser.error("--entry is only valid together with --code")
        args.program, args.entry = fibonacci_program(6 if args.fib is None else args.fib)

    for name in ("stack_capacity", "locals_size"):
        if getattr(args, name) < 0:
            parser.error(f"--{name.replace('_', '-')} must be non-negative")
    if args.max_steps is not None and args.max_steps < 0:
        parser.error("--max-steps must be non-negative")

    return args


def main(argv: Optional[List[str]] = None) -> int:
    try:
        config = VMConfig.from_env()
    except ValueError as e:
        print(f"stackvm: {e}", file=sys.stderr)
        return 2

    args = parse_args(argv, config)
    # --trace only shows anything at DEBUG
    configure_logging("DEBUG" if args.trace else args.log_level, args.log_format)

    if args.disassemble:
        operations = disassemble(args.program)
        width = len(str(len(args.program)))
        for operation in operations:
            print(format_instruction(operation, width=width))
        return 0

    logger.info("Running program", code_size=len(args.program), entry=args.entry)
    result = run_program(
        args.program,
        entry=args.entry,
        locals_size=args.locals_size,
        stack_capacity=args.stack_capacity,
        max_steps=args.max_steps,
        trace=args.trace,
    )

    if args.show_stack:
        print(f"<{len(result.stack)}> " + " ".join(str(x) for x in result.stack))

    if result.faulted:
        logger.error(
            "Program faulted",
            steps=result.steps,
            backtrace=[repr(frame) for frame in result.frames],
            **result.fault.to_dict(),
        )
        print(f"stackvm: {result.fault.kind.value} at pc {result.fault.pc}: {result.fault}", file=sys.stderr)
        return 1

    logger.info("Program halted", steps=result.steps, pc=result.pc)
    return 0


if __name__ == "__main__":
    sys.exit(main())
