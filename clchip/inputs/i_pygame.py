#!/usr/bin/env python3

"""
PyGame Input Plugin

Rather than following individual press and release events, this takes a
snapshot of the whole keyboard each time messages are processed, so a key
can never get stuck down if a release event goes missing (e.g. when the
window loses focus).  Note that the check should not be called more often
than 60Hz, as pumping the event queue is time consuming.

Closing the window or pressing ESC asks the emulator to quit.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .i_null import Inputs as InputsBase


class Inputs(InputsBase):
    def __init__(self, keymap, renderer):
        self.key_down = [False] * 0x10
        super().__init__(keymap, renderer)

    def process_messages(self):
        quit_program = False

        for event in pygame.event.get():
            if event.type == pygame.QUIT or (event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE):
                quit_program = True  # Drain the rest of the queue anyway

        pressed = pygame.key.get_pressed()

        for hex_key, key_code in enumerate(self.key_codes):
            self.key_down[hex_key] = bool(pressed[key_code])

        return quit_program

    def is_key_down(self, key):
        return self.key_down[key]
