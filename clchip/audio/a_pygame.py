#!/usr/bin/env python3

"""
PyGame Audio Plugin

Plays the buzzer through PyGame / SDL.

The original hardware buzzer is either 'on' or 'off', so a single cycle of a
square wave is built into an 8-bit sample at start-up, and looped for as long
as the buzzer is enabled.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .a_null import Audio as AudioBase

PLAYBACK_FREQUENCY = 44100
BUZZER_FREQUENCY = 440.0
DEFAULT_VOLUME = 0.1


class Audio(AudioBase):
    def __init__(self, frequency=BUZZER_FREQUENCY):
        pygame.mixer.pre_init(PLAYBACK_FREQUENCY, size=8, channels=1, buffer=512, allowedchanges=0)
        pygame.mixer.init()

        # One full cycle: high for the first half, low for the second
        cycle_length = max(2, int(PLAYBACK_FREQUENCY / frequency))
        half_cycle = cycle_length // 2
        self.sample = bytearray(b"\xFF" * half_cycle + b"\x00" * (cycle_length - half_cycle))
        self.sound = pygame.mixer.Sound(buffer=self.sample)
        self.sound.set_volume(DEFAULT_VOLUME)
        super().__init__()

    def enable_buzzer(self, enabled):
        # Play or stop sample playback.  If the sample is already playing, it won't be restarted.
        if enabled:
            if not self.buzzer_enabled:
                self.sound.play(-1)
        elif self.buzzer_enabled:
            self.sound.stop()

        super().enable_buzzer(enabled)

    def is_null(self):
        return False

    def shutdown(self):
        self.sound.stop()
        pygame.mixer.quit()
        super().shutdown()
