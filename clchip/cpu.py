#!/usr/bin/env python3

"""
CPU Emulator (CHIP-8)

This is where most of the processing happens.  The CPU owns the registers and
timers, and is plugged into RAM, a Stack and a Framebuffer.  Together these
form the whole virtual machine, which the host advances one instruction at a
time with step(), and ticks at 60Hz with tick_timers().  The CPU never sleeps
or waits on the host: pacing and I/O are the host's problem.

The program counter is incremented straight after each fetch, so jumps and
calls simply write their target address.

Quirks are fixed to the behaviour most ROMs expect:
    * SHR/SHL shift Vx in place, and Vy is ignored.
    * FX55/FX65 transfer V0 to Vx inclusive, and leave I untouched.
    * DXYN wraps the starting coordinates, but clips sprites at the edges.
    * VF is always written after the result register, so it wins if x is F.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from random import Random
from .constants import ADDR_MASK, FONT, FONT_LOC, FONT_GLYPH_SIZE, MAX_ROM_SIZE, PROGRAM_LOC
from .errors import ExecutionError
from .ram import RomTooLarge


class CPUError(Exception):
    pass


class UnknownOpcode(ExecutionError):
    def __init__(self, opcode, address, debug_info=None):
        self.opcode = opcode
        self.address = address
        message = "Opcode 0x{:04x} at address 0x{:03x} is not a CHIP-8 instruction.".format(opcode, address)

        if debug_info:
            message = "{}\n\n{}".format(debug_info, message)

        super().__init__(message)


class CPU:
    def __init__(self, ram, stack, framebuffer, debugger, rng=None):
        self.ram = ram
        self.stack = stack
        self.framebuffer = framebuffer
        self.debugger = debugger
        self.live_debug = self.debugger.is_live()
        self.rng = Random() if rng is None else rng

        # Define instruction pointers.
        # n = Nibble
        # kk = Byte
        # nnn = address
        # x/y = register (0-15)
        self.instructions = {
            # Initial lookup for instructions' first nibble
            0x0: self._0nnn,  # Alias for bitmask 0xFFFF
            0x1: self._1nnn,
            0x2: self._2nnn,
            0x3: self._3xkk,
            0x4: self._4xkk,
            0x5: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0x6: self._6xkk,
            0x7: self._7xkk,
            0x8: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0x9: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0xA: self._Annn,
            0xB: self._Bnnn,
            0xC: self._Cxkk,
            0xD: self._Dxyn,
            0xE: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            0xF: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            # Instructions beginning with nibble 0x0, bitmask 0xFFFF (i.e., exact match)
            0x00E0: self._00E0,
            0x00EE: self._00EE,
            # Instructions beginning with nibble 0x5/0x8/0x9, bitmask 0xF00F
            0x5000: self._5xy0,
            0x8000: self._8xy0,
            0x8001: self._8xy1,
            0x8002: self._8xy2,
            0x8003: self._8xy3,
            0x8004: self._8xy4,
            0x8005: self._8xy5,
            0x8006: self._8xy6,
            0x8007: self._8xy7,
            0x800E: self._8xyE,
            0x9000: self._9xy0,
            # Instructions beginning with nibble 0xE/0xF, bitmask 0xF0FF
            0xE09E: self._Ex9E,
            0xE0A1: self._ExA1,
            0xF007: self._Fx07,
            0xF00A: self._Fx0A,
            0xF015: self._Fx15,
            0xF018: self._Fx18,
            0xF01E: self._Fx1E,
            0xF029: self._Fx29,
            0xF033: self._Fx33,
            0xF055: self._Fx55,
            0xF065: self._Fx65
        }

        # Initialise registers
        self.v = memoryview(bytearray(16))  # Bytearrays are mutable, so this should be fast when a register is updated
        self.i = 0  # Index register (16 bits are kept, but only 12 reach the address bus)

        # Initialise timers
        self.dt = 0  # Delay timer (byte)
        self.st = 0  # Sound timer (byte)

        # Initialise program counter and current opcode
        self.pc = PROGRAM_LOC
        self.debug_pc = PROGRAM_LOC
        self.opcode = 0

        # Input-related vars.  Keys are owned by the host, and only read here.
        self.keys = [False] * 0x10
        self.waiting_for_key = None  # Register index awaiting a keypress, if any

        self.reset()

    def reset(self):
        self.ram.clear()
        self.ram.write_block(FONT_LOC, FONT)
        self.stack.clear()
        self.framebuffer.reset()
        self.v[:] = bytes(16)
        self.i = 0
        self.dt = 0
        self.st = 0
        self.pc = PROGRAM_LOC
        self.debug_pc = PROGRAM_LOC
        self.opcode = 0
        self.waiting_for_key = None

        for key in range(0x10):
            self.keys[key] = False

    def load_rom(self, rom):
        # Callers should reset first.  This only overwrites the program area the ROM covers.
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLarge(len(rom), MAX_ROM_SIZE)

        self.ram.write_block(PROGRAM_LOC, bytes(rom))  # Accept any sequence of octets

    def step(self):
        # Keep track of the program counter before altering it in any way for debugging purposes
        self.debug_pc = self.pc

        if self.waiting_for_key is not None:
            # Parked on FX0A.  The PC still points at it, so don't fetch anything new.
            self._await_keypress()
            return

        self.opcode = self.fetch()
        self.inc_pc()  # Program counter updates after fetch, but before execute
        self.decode_exec()

    def tick_timers(self):
        # Call at 60Hz.  Returns True on the tick where the sound timer runs out.
        if self.dt > 0:
            self.dt -= 1

        if self.st > 0:
            self.st -= 1
            return self.st == 0

        return False

    def set_key(self, key, pressed):
        if not 0 <= key < 0x10:
            raise CPUError("Key {} is out of range -- the keypad has 16 keys".format(key))

        self.keys[key] = bool(pressed)

    def read_framebuffer(self):
        return self.framebuffer.read()

    def take_draw_flag(self):
        return self.framebuffer.take_draw_flag()

    def is_beeping(self):
        return self.st > 0

    def fetch(self):
        pc = self.pc
        return (self.ram.read(pc) << 8) | self.ram.read(pc + 1)

    def _call_masked_instruction(self, masked_opcode):
        instruction = self.instructions.get(masked_opcode)

        if instruction is None:
            self._opcode_unsupported()

        instruction()

    def decode_exec(self):
        self._call_masked_instruction((0xF000 & self.opcode) >> 12)

    def inc_pc(self):
        self.pc = (self.pc + 2) & ADDR_MASK

    def dec_pc(self):
        # Only used to re-run instructions (i.e. keypress wait).
        self.pc = (self.pc - 2) & ADDR_MASK

    # References to Vx, Vy, byte and addr are always in the same opcode position throughout all instructions, so avoid
    # excessive code duplication (ever so slight slowdown).  Don't reference these more than necessary as they are
    # recalculated each time.
    @property
    def vx(self):
        return (self.opcode & 0xF00) >> 8

    @property
    def vy(self):
        return (self.opcode & 0xF0) >> 4

    @property
    def addr(self):
        return self.opcode & 0xFFF

    @property
    def byte(self):
        return self.opcode & 0xFF

    @property
    def nibble(self):
        return self.opcode & 0xF

    def _opcode_unsupported(self):
        raise UnknownOpcode(
            self.opcode, self.debug_pc, "Debug info:\n{}".format(self.debugger.debug(self, "???", verbose=True))
        ) from None

    def debug(self, instruction):
        self.debugger.output(self, instruction)

    def _0nnn(self):
        opcode = self.opcode

        if opcode == 0x0000:
            # Blank memory.  Treated as a no-op so padding between routines can be run through.
            if self.live_debug:
                self.debug("NOP")

            return

        if opcode not in (0x00E0, 0x00EE):
            # 0NNN machine code calls (and other variants' 00xx instructions) aren't supported
            self._opcode_unsupported()

        self._call_masked_instruction(opcode)

    def _5nnn_8nnn_9nnn(self):
        self._call_masked_instruction(self.opcode & 0xF00F)

    def _Ennn_Fnnn(self):
        self._call_masked_instruction(self.opcode & 0xF0FF)

    def _00E0(self):  # CLS
        if self.live_debug:
            self.debug("CLS")

        self.framebuffer.clear()

    def _00EE(self):  # RET
        if self.live_debug:
            self.debug("RET")

        self.pc = self.stack.pop()

    def _1nnn(self):  # JP addr
        if self.live_debug:
            self.debug("JP 0x{:03x}".format(self.addr))

        self.pc = self.addr

    def _2nnn(self):  # CALL addr
        if self.live_debug:
            self.debug("CALL 0x{:03x}".format(self.addr))

        self.stack.push(self.pc)  # Already pointing at the return address
        self.pc = self.addr

    def _3xkk(self):  # SE Vx, byte
        if self.live_debug:
            self.debug("SE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.v[self.vx] == self.byte:
            self.inc_pc()

    def _4xkk(self):  # SNE Vx, byte
        if self.live_debug:
            self.debug("SNE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.v[self.vx] != self.byte:
            self.inc_pc()

    def _5xy0(self):  # SE Vx, Vy
        if self.live_debug:
            self.debug("SE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.v[self.vx] == self.v[self.vy]:
            self.inc_pc()

    def _6xkk(self):  # LD Vx, byte
        if self.live_debug:
            self.debug("LD V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        self.v[self.vx] = self.byte

    def _7xkk(self):  # ADD Vx, byte
        vx = self.vx
        byte = self.byte

        if self.live_debug:
            self.debug("ADD V{:01x}, 0x{:02x}".format(vx, byte))

        # No carry flag for this one
        self.v[vx] = (self.v[vx] + byte) & 0xFF

    def _8xy0(self):  # LD Vx, Vy
        if self.live_debug:
            self.debug("LD V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] = self.v[self.vy]

    def _8xy1(self):  # OR Vx, Vy
        if self.live_debug:
            self.debug("OR V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] |= self.v[self.vy]

    def _8xy2(self):  # AND Vx, Vy
        if self.live_debug:
            self.debug("AND V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] &= self.v[self.vy]

    def _8xy3(self):  # XOR Vx, Vy
        if self.live_debug:
            self.debug("XOR V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] ^= self.v[self.vy]

    def _8xy4(self):  # ADD Vx, Vy
        vx = self.vx
        vy = self.vy

        if self.live_debug:
            self.debug("ADD V{:01x}, V{:01x}".format(vx, vy))

        val = self.v[vx] + self.v[vy]
        self.v[vx] = val & 0xFF
        self.v[0xF] = int(val > 0xFF)  # Vf is set when carrying

    def _post_8xy5_8xy7(self, val):  # Post-SUB/SUBN
        self.v[self.vx] = val & 0xFF
        # Vf is set when NOT borrowing, and this should happen AFTER Vx is set, as sometimes VF is specified in the
        # parameters.
        self.v[0xF] = int(val >= 0)

    def _8xy5(self):  # SUB Vx, Vy
        if self.live_debug:
            self.debug("SUB V{:01x}, V{:01x}".format(self.vx, self.vy))

        self._post_8xy5_8xy7(self.v[self.vx] - self.v[self.vy])

    def _8xy6(self):  # SHR Vx
        vx = self.vx

        if self.live_debug:
            self.debug("SHR V{:01x}".format(vx))

        val = self.v[vx]
        self.v[vx] = val >> 1
        self.v[0xF] = val & 1  # The whole byte gets set just for the flag

    def _8xy7(self):  # SUBN Vx, Vy
        if self.live_debug:
            self.debug("SUBN V{:01x}, V{:01x}".format(self.vx, self.vy))

        self._post_8xy5_8xy7(self.v[self.vy] - self.v[self.vx])

    def _8xyE(self):  # SHL Vx
        vx = self.vx

        if self.live_debug:
            self.debug("SHL V{:01x}".format(vx))

        val = self.v[vx]
        self.v[vx] = (val << 1) & 0xFF
        self.v[0xF] = val >> 7

    def _9xy0(self):  # SNE Vx, Vy
        if self.live_debug:
            self.debug("SNE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.v[self.vx] != self.v[self.vy]:
            self.inc_pc()

    def _Annn(self):  # LD I, addr
        if self.live_debug:
            self.debug("LD I, 0x{:03x}".format(self.addr))

        self.i = self.addr

    def _Bnnn(self):  # JP V0, addr
        if self.live_debug:
            self.debug("JP V0, 0x{:03x}".format(self.addr))

        self.pc = (self.v[0] + self.addr) & ADDR_MASK

    def _Cxkk(self):  # RND Vx, byte
        if self.live_debug:
            self.debug("RND V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        # The ANDing here is intentional.  This is not a random number between 0 and 'byte' inclusive.
        self.v[self.vx] = self.rng.randint(0, 0xFF) & self.byte

    def _Dxyn(self):  # DRW Vx, Vy, nibble
        # Main sprite drawing routine.  Sprites are always 8 pixels wide, and 'nibble' rows high.
        height = self.nibble

        if self.live_debug:
            self.debug("DRW V{:01x}, V{:01x}, 0x{:01x}".format(self.vx, self.vy, height))

        # The sprite's start always wraps.  Anything hanging off the right or bottom is trimmed.
        framebuffer = self.framebuffer
        vid_width, vid_height = framebuffer.get_vid_size()
        vx_pos = self.v[self.vx] % vid_width
        vy_pos = self.v[self.vy] % vid_height
        collided = False
        i = self.i

        for row in range(height):
            spr_data = self.ram.read(i + row)
            scr_y = vy_pos + row

            for col in range(8):
                if spr_data & (0x80 >> col):
                    # Don't stop drawing on a collision.  Set the flag, and never unset it.
                    if framebuffer.xor_pixel(vx_pos + col, scr_y):
                        collided = True

        self.v[0xF] = int(collided)
        framebuffer.draw_flag = True  # Even if everything was clipped

    def _Ex9E(self):  # SKP Vx
        if self.live_debug:
            self.debug("SKP V{:01x}".format(self.vx))

        if self.keys[self.v[self.vx] & 0xF]:
            self.inc_pc()

    def _ExA1(self):  # SKNP Vx
        if self.live_debug:
            self.debug("SKNP V{:01x}".format(self.vx))

        if not self.keys[self.v[self.vx] & 0xF]:
            self.inc_pc()

    def _Fx07(self):  # LD Vx, DT
        if self.live_debug:
            self.debug("LD V{:01x}, DT".format(self.vx))

        self.v[self.vx] = self.dt

    def _Fx0A(self):  # LD Vx, K
        if self.live_debug:
            self.debug("LD V{:01x}, K".format(self.vx))

        # This opcode waits for a keypress, but since the timers still need to expire and the display still needs
        # updating, control goes back to the host.  The program counter is wound back onto this instruction, and
        # later steps just check the keypad until something is held down.
        self.waiting_for_key = self.vx
        self.dec_pc()

    def _await_keypress(self):
        for key in range(0x10):
            if self.keys[key]:
                self.v[self.waiting_for_key] = key
                self.waiting_for_key = None
                self.inc_pc()
                return

    def _Fx15(self):  # LD DT, Vx
        if self.live_debug:
            self.debug("LD DT, V{:01x}".format(self.vx))

        self.dt = self.v[self.vx]

    def _Fx18(self):  # LD ST, Vx
        if self.live_debug:
            self.debug("LD ST, V{:01x}".format(self.vx))

        self.st = self.v[self.vx]

    def _Fx1E(self):  # ADD I, Vx
        if self.live_debug:
            self.debug("ADD I, V{:01x}".format(self.vx))

        # I keeps all 16 bits.  Memory accesses mask it down later.
        self.i = (self.i + self.v[self.vx]) & 0xFFFF

    def _Fx29(self):  # LD F, Vx
        if self.live_debug:
            self.debug("LD F, V{:01x}".format(self.vx))

        self.i = FONT_LOC + FONT_GLYPH_SIZE * (self.v[self.vx] & 0xF)

    def _Fx33(self):  # LD B, Vx
        if self.live_debug:
            self.debug("LD B, V{:01x}".format(self.vx))

        val = self.v[self.vx]
        i = self.i
        self.ram.write(i, val // 100)             # Most-significant digit
        self.ram.write(i + 1, (val // 10) % 10)   # Middle digit
        self.ram.write(i + 2, val % 10)           # Least-significant digit

    def _Fx55(self):  # LD [I], Vx
        if self.live_debug:
            self.debug("LD [I], V{:01x}".format(self.vx))

        i = self.i

        # Ensure with +1 that the final register is copied
        for reg in range(self.vx + 1):
            self.ram.write(i + reg, self.v[reg])

    def _Fx65(self):  # LD Vx, [I]
        if self.live_debug:
            self.debug("LD V{:01x}, [I]".format(self.vx))

        i = self.i

        for reg in range(self.vx + 1):
            self.v[reg] = self.ram.read(i + reg)
