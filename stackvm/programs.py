# programs.py
# Demonstration programs, hand-encoded as instruction streams.

from typing import List, Tuple

from .core.opcodes import Opcode as Op

FIB_PROCEDURE = 0
FIB_ENTRY = 38


def fibonacci_program(n: int = 6) -> Tuple[List[int], int]:
    """
    Recursive Fibonacci procedure plus a main routine calling it with ``n``.

    fib(0) = 0, fib(1) = fib(2) = 1. The procedure lives at offset 0 and
    reads its single argument at frame offset -3.

    Returns:
        (code, entry) where entry is the offset of the main routine
    """
    code = [
        # int fib(n) {
        #     if (n == 0) return 0;
        Op.LOAD, -3,              # 0  - load argument n
        Op.CONST, 0,              # 2
        Op.EQ,                    # 4  - n == 0
        Op.JMPF, 10,              # 5  - not equal: goto 10
        Op.CONST, 0,              # 7
        Op.RET,                   # 9  - return 0
        #     if (n < 3) return 1;
        Op.LOAD, -3,              # 10
        Op.CONST, 3,              # 12
        Op.LT,                    # 14 - n < 3
        Op.JMPF, 20,              # 15 - not less: goto 20
        Op.CONST, 1,              # 17
        Op.RET,                   # 19 - return 1
        #     return fib(n - 1) + fib(n - 2);
        Op.LOAD, -3,              # 20
        Op.CONST, 1,              # 22
        Op.SUB,                   # 24 - n - 1
        Op.CALL, FIB_PROCEDURE, 1,  # 25
        Op.LOAD, -3,              # 28
        Op.CONST, 2,              # 30
        Op.SUB,                   # 32 - n - 2
        Op.CALL, FIB_PROCEDURE, 1,  # 33
        Op.ADD,                   # 36 - sum of both return values
        Op.RET,                   # 37
        # }
        # main
        Op.CONST, n,              # 38
        Op.CALL, FIB_PROCEDURE, 1,  # 40
        Op.PRINT,                 # 43
        Op.HALT,                  # 44
    ]
    return [int(value) for value in code], FIB_ENTRY


def add_and_print_program(a: int = 2, b: int = 3) -> Tuple[List[int], int]:
    """push a; push b; add; print; halt"""
    code = [Op.CONST, a, Op.CONST, b, Op.ADD, Op.PRINT, Op.HALT]
    return [int(value) for value in code], 0
