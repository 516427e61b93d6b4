import dataclasses
from typing import Iterator, List, Tuple

# Bookkeeping slots pushed by CALL, relative to the callee's frame pointer
RETURN_PC_SLOT = 0
SAVED_FP_SLOT = -1
ARG_COUNT_SLOT = -2
FRAME_OVERHEAD = 3


@dataclasses.dataclass(frozen=True)
class CallFrame:
    """
    One active procedure activation, decoded from the operand stack.

    A frame is not stored anywhere as an object: CALL pushes the argument
    count, the caller's frame pointer and the return program counter, then
    points the frame pointer at the last of those slots. This record is a
    read-only view over those slots.
    """

    frame_pointer: int
    return_pc: int
    saved_frame_pointer: int
    arg_count: int
    arguments: Tuple[int, ...] = ()

    @property
    def base(self) -> int:
        """Lowest stack index owned by the frame (first argument)."""
        return self.frame_pointer - FRAME_OVERHEAD + 1 - self.arg_count

    def __repr__(self) -> str:
        return (
            f"CallFrame(fp={self.frame_pointer}, return_pc={self.return_pc}, "
            f"args={list(self.arguments)})"
        )


def walk_frames(machine) -> Iterator[CallFrame]:
    """
    Follow the saved frame pointer chain, innermost frame first.

    Stops after ``machine.call_depth`` frames, or earlier if a link points
    outside the occupied stack.
    """
    fp = machine.fp
    for _ in range(machine.call_depth):
        if fp + ARG_COUNT_SLOT < 0 or fp > machine.sp:
            return
        arg_count = machine.stack[fp + ARG_COUNT_SLOT]
        first_arg = fp + ARG_COUNT_SLOT - arg_count
        arguments = tuple(machine.stack[max(first_arg, 0) : fp + ARG_COUNT_SLOT])
        frame = CallFrame(
            frame_pointer=fp,
            return_pc=machine.stack[fp + RETURN_PC_SLOT],
            saved_frame_pointer=machine.stack[fp + SAVED_FP_SLOT],
            arg_count=arg_count,
            arguments=arguments,
        )
        yield frame
        fp = frame.saved_frame_pointer


def backtrace(machine) -> List[CallFrame]:
    return list(walk_frames(machine))
