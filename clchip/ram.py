#!/usr/bin/env python3

"""
RAM Emulator

A flat 4K bank.  Single-byte reads and writes wrap at the top of memory, as
the address bus is only 12 bits wide.  Block writes are used for installing
the font and ROM images, and must fit entirely inside the bank.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import MEM_SIZE, ADDR_MASK


class RAMError(Exception):
    pass


class RomTooLarge(RAMError):
    def __init__(self, size, limit):
        self.size = size
        self.limit = limit
        super().__init__("ROM is {} bytes, but only {} bytes of program memory are available".format(size, limit))


class RAM:
    def __init__(self):
        self.mem = memoryview(bytearray(MEM_SIZE))
        self.mem_top = MEM_SIZE - 1
        self.mem_size = MEM_SIZE

    def read(self, location):
        return self.mem[location & ADDR_MASK]

    def read_block(self, location, size=1):
        # For debugging and host access only.  No wrapping.
        return self.mem[location:location + size]

    def write(self, location, byte):
        self.mem[location & ADDR_MASK] = byte

    def write_block(self, location, block):
        block_size = len(block)
        block_top = location + block_size
        self.check_overflow(block_top - 1)
        self.mem[location:block_top] = block

    def check_overflow(self, location):
        if location > self.mem_top:
            raise RAMError("Memory overflow")

    def zero_block(self, offset, size):
        block_top = offset + size
        self.check_overflow(block_top - 1)
        self.mem[offset:block_top] = bytes(size)

    def clear(self):
        self.zero_block(0, self.mem_size)
