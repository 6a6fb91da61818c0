#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import unittest
from clchip.ram import RAM, RAMError, RomTooLarge


class TestRAM(unittest.TestCase):
    def setUp(self):
        self.ram = RAM()

    def test_ram_init(self):
        self.assertEqual(0x1000, len(self.ram.mem))
        self.assertEqual(bytes(0x1000), bytes(self.ram.mem))

    def test_ram_write(self):
        self.ram.write(1, 255)
        self.assertEqual("00ff000000", self.ram.read_block(0, 5).hex())

    def test_ram_write_block(self):
        self.ram.write_block(1, bytearray(b"\xFD\xFE"))
        self.ram.write_block(4, bytearray(b"\xFF"))
        self.assertEqual("00fdfe00ff", self.ram.read_block(0, 5).hex())

    def test_ram_write_block_top(self):
        self.ram.write_block(0xFFE, b"\x01\x02")
        self.assertEqual("0102", self.ram.read_block(0xFFE, 2).hex())

    def test_ram_address_wrap(self):
        self.ram.write(0x1001, 0x55)
        self.assertEqual(0x55, self.ram.read(0x001))
        self.assertEqual(0x55, self.ram.read(0xF001))

    def test_ram_block_overflow(self):
        self.assertRaises(RAMError, self.ram.write_block, 0xFFF, bytearray(b"\xFE\xFF"))
        self.assertEqual(0, self.ram.read(0xFFF))

    def test_ram_zero_block(self):
        self.ram.write_block(0, bytearray(b"\xFC\xFD\xFE\xFF"))
        self.assertEqual("fcfdfeff00", self.ram.read_block(0, 5).hex())
        self.ram.zero_block(1, 2)
        self.assertEqual("fc0000ff00", self.ram.read_block(0, 5).hex())

    def test_ram_zero_block_overflow(self):
        self.assertRaises(RAMError, self.ram.zero_block, 0xFFF, 2)

    def test_ram_clear(self):
        self.ram.write_block(1, bytearray(b"\xFD\xFE"))
        self.ram.write(0xFFF, 0x1)
        self.ram.clear()
        self.assertEqual(bytes(0x1000), bytes(self.ram.mem))

    def test_ram_rom_too_large_message(self):
        error = RomTooLarge(4000, 3584)
        self.assertIsInstance(error, RAMError)
        self.assertIn("4000", str(error))
        self.assertIn("3584", str(error))


if __name__ == "__main__":
    unittest.main()
