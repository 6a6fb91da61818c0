#!/usr/bin/env python3

"""
Framebuffer Emulator

Pixels are written here by the CPU, and read by the host whenever it gets
round to redrawing the display (usually 60Hz).  Keeping the framebuffer
separate from the host renderer means rendering speed has no bearing on CPU
speed, and the host can simply skip frames if it falls behind.

Programs cannot write directly into video RAM.  Instead, sprites are drawn
using an XOR method, one bit per pixel.  Each pixel is stored as a single
byte of 0 or 1 at 'x + y * width' so the host can read it straight off.

Collisions (where a pixel was set, but was unset by an XOR) are reported back
to the caller.  Pixels falling off the right or bottom edges are clipped, not
wrapped.

Any change to the contents raises the draw flag, which stays up until the
host takes it.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import VID_WIDTH, VID_HEIGHT


class Framebuffer:
    def __init__(self, vid_width=VID_WIDTH, vid_height=VID_HEIGHT):
        self.vid_width = vid_width
        self.vid_height = vid_height
        self.vid_size = vid_width * vid_height
        self.pixels = memoryview(bytearray(self.vid_size))
        self.draw_flag = False

    def clear(self):
        self.pixels[:] = bytes(self.vid_size)
        self.draw_flag = True

    def reset(self):
        # Power-on state.  Unlike CLS, this doesn't count as drawing.
        self.pixels[:] = bytes(self.vid_size)
        self.draw_flag = False

    def xor_pixel(self, x, y):
        # Returns flagging any collision, or None if the pixel was clipped
        if x >= self.vid_width or y >= self.vid_height:
            return None

        vram_loc = y * self.vid_width + x
        pixel = self.pixels[vram_loc]
        self.pixels[vram_loc] = pixel ^ 1
        self.draw_flag = True

        return pixel != 0

    def get_pixel(self, x, y):
        return self.pixels[y * self.vid_width + x]

    def read(self):
        return self.pixels.toreadonly()

    def take_draw_flag(self):
        draw_flag = self.draw_flag
        self.draw_flag = False
        return draw_flag

    def get_vid_size(self):
        return self.vid_width, self.vid_height
