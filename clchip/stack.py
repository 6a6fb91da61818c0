#!/usr/bin/env python3

"""
Stack Emulator

There is no specified location for the call stack in system RAM, and programs
can't see the stack pointer, so it lives here in host memory.

Unlike a plain list, the 16 slots are fixed and keep their contents after a
return, so the stack pointer (SP) behaves exactly like the hardware register:
0 is empty and 16 is full.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import STACK_SIZE
from .errors import ExecutionError


class StackError(ExecutionError):
    pass


class StackOverflow(StackError):
    def __init__(self):
        super().__init__("Stack overflow")


class StackUnderflow(StackError):
    def __init__(self):
        super().__init__("Stack underflow")


class Stack:
    def __init__(self, size=STACK_SIZE):
        self.size = size
        self.slots = [0] * size
        self.sp = 0

    def push(self, item):
        if self.sp >= self.size:
            raise StackOverflow()

        self.slots[self.sp] = item
        self.sp += 1

    def pop(self):
        if self.sp <= 0:
            raise StackUnderflow()

        self.sp -= 1
        return self.slots[self.sp]

    def clear(self):
        for slot in range(self.size):
            self.slots[slot] = 0

        self.sp = 0

    def get_items(self):
        # For debugging
        return self.slots[:self.sp]
