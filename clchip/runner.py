#!/usr/bin/env python3

"""
Host Runner

Drives a CPU in real time.  The CPU itself has no idea what time it is, so
this loop decides when to execute the next instruction, ticks the timers at
exactly 60Hz of wall time, feeds the keypad, and hands the framebuffer to the
renderer whenever it has changed.

Like the rest of the emulator, this spins on perf_counter rather than
sleeping, as sleeps are far too coarse on most hosts to get the timing right.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from time import perf_counter
from .constants import APP_NAME, DEFAULT_CLOCK_SPEED, TIMER_FREQ

DISPLAY_FREQ = 60.0  # 60Hz host display refresh and input polling
DISPLAY_INTERVAL = 1.0 / DISPLAY_FREQ
TIMER_INTERVAL = 1.0 / TIMER_FREQ


class Runner:
    def __init__(self, cpu, renderer, inputs, audio, clock_speed=None):
        self.cpu = cpu
        self.renderer = renderer
        self.inputs = inputs
        self.audio = audio

        if clock_speed is None:
            clock_speed = DEFAULT_CLOCK_SPEED

        # User can specify 0 for uncapped
        self.core_interval = None if clock_speed <= 0 else 1.0 / clock_speed
        self.buzzer_enabled = False

        # Scheduling and performance-related vars
        self.next_display_update_time = 0
        self.next_timer_time = 0
        self.perf_counter_fps = 0
        self.perf_counter_ops = 0
        self.next_perf_report_time = 0

        width, height = cpu.framebuffer.get_vid_size()
        self.renderer.set_resolution(width, height)
        self.report_perf()

    def run(self):
        cpu = self.cpu
        self.next_timer_time = perf_counter() + TIMER_INTERVAL

        while True:
            this_time = perf_counter()  # Do this first for maximum precision

            # Performance counters
            if this_time >= self.next_perf_report_time:
                self.next_perf_report_time = int(this_time) + 1.0
                # Reporting the performance should be done before a refresh, as refreshing will likely show the report
                self.report_perf(self.perf_counter_fps, self.perf_counter_ops)
                self.perf_counter_ops = 0
                self.perf_counter_fps = 0

            # Prevent unnecessary display rendering in excess of host frame rate
            if this_time >= self.next_display_update_time:
                if self.inputs.process_messages():  # Process inputs at 60Hz too, to avoid slowdown
                    return

                self.sync_keys()
                self.next_display_update_time = this_time + DISPLAY_INTERVAL
                self.refresh_framebuffer()
                self.perf_counter_fps += 1

            # Catch up on any timer ticks that are due.  If the host lags, the timers will jump.
            while this_time >= self.next_timer_time:
                self.tick_timers()
                self.next_timer_time += TIMER_INTERVAL

            cpu.step()
            self.update_buzzer()  # The sound timer may have just been loaded

            if self.core_interval is not None:
                # Wait for next CPU instruction.  Do this last for maximum precision (takes into account time spent on
                # this instruction)
                next_time = this_time + self.core_interval

                while perf_counter() < next_time:  # Unfortunately we have to do this to get the timing right
                    pass

            self.perf_counter_ops += 1

    def sync_keys(self):
        for key in range(0x10):
            self.cpu.set_key(key, self.inputs.is_key_down(key))

    def tick_timers(self):
        self.cpu.tick_timers()
        self.update_buzzer()

    def update_buzzer(self):
        # Start the buzzer as soon as the sound timer is loaded, and stop it when it runs out
        beeping = self.cpu.is_beeping()

        if beeping != self.buzzer_enabled:
            self.audio.enable_buzzer(beeping)
            self.buzzer_enabled = beeping

    def refresh_framebuffer(self):
        # Render only if the CPU drew something since the last refresh.  Should also be called before a pause or quit.
        content_changed = self.cpu.take_draw_flag()

        if content_changed:
            self.renderer.draw_frame(self.cpu.read_framebuffer())

        self.renderer.refresh_display(content_changed)

    def report_perf(self, fps=0, ops=0):
        self.renderer.set_title("{} - {} FPS, {} OPS".format(APP_NAME, fps, ops))
