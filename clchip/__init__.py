#!/usr/bin/env python3

"""
Main Startup Module

Simply call main(args) to start the emulator, replacing args with a dictionary
of options.  This can be done via the Terminal or GUI.

All options must be supplied.  Defaults can be specified with a 'None'.

Returns the process exit status: 0 if the user quit, or 1 if the ROM could not
be loaded or the program crashed.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from random import Random
from .constants import APP_INTRO, APP_COPYRIGHT, DEFAULT_KEYMAP
from .cpu import CPU
from .debugger import Debugger
from .errors import ExecutionError
from .framebuffer import Framebuffer
from .hostio import Loader
from .inputs.i_null import InputsError
from .ram import RAM, RAMError
from .renderers.r_null import RendererError
from .runner import Runner
from .stack import Stack


class StartupError(Exception):
    pass


def select_plugins(opt_renderer, mute_audio):
    # Returns the Renderer, Inputs and Audio classes to use.  If necessary, try PyGame first, then Curses.
    auto_select_renderer = opt_renderer is None

    # flake8: noqa: F401
    if auto_select_renderer or opt_renderer == "pygame":
        # pylint: disable=unused-import, import-outside-toplevel, raise-missing-from
        try:
            import pygame
        except ImportError:
            if not auto_select_renderer:
                raise StartupError("PyGame does not appear to be installed.")

            opt_renderer = "curses"
        else:
            from .inputs.i_pygame import Inputs
            from .renderers.r_pygame import Renderer

            # PyGame can handle proper waveforms
            if mute_audio:
                from .audio.a_null import Audio
            else:
                from .audio.a_pygame import Audio

            return Renderer, Inputs, Audio

    if opt_renderer == "curses":
        # pylint: disable=unused-import, import-outside-toplevel, raise-missing-from
        try:
            import curses
        except ImportError:
            if auto_select_renderer:
                raise StartupError("Neither PyGame nor Curses (or Windows-Curses) appear to be installed.")

            raise StartupError("Curses (or Windows-Curses) does not appear to be installed.")

        from .inputs.i_curses import Inputs
        from .renderers.r_curses import Renderer

        # Terminals can handle fixed-length beeps, but not sampled sound
        if mute_audio or mute_audio is None:
            from .audio.a_null import Audio
        else:
            from .audio.a_curses import Audio

        return Renderer, Inputs, Audio

    # pylint: disable=import-outside-toplevel
    from .inputs.i_null import Inputs
    from .renderers.r_null import Renderer
    from .audio.a_null import Audio

    return Renderer, Inputs, Audio


def build_cpu(rom, debug=False, seed=None):
    # Create a new CPU, plug it into fresh RAM, stack and framebuffer, and load the ROM at the default address
    debugger = Debugger()
    debugger.set_live(debug)
    cpu = CPU(RAM(), Stack(), Framebuffer(), debugger, rng=Random(seed))
    cpu.reset()
    cpu.load_rom(rom)
    return cpu


def main(args):
    print("".join((APP_INTRO, APP_COPYRIGHT)))

    try:
        rom = Loader().load_binary(args["filename"])
        cpu = build_cpu(rom, debug=args["debug"], seed=args["seed"])
        Renderer, Inputs, Audio = select_plugins(args["renderer"], args["mute"])
    except (OSError, RAMError, StartupError) as err:
        print("Unable to start: {}".format(err))
        return 1

    renderer = None
    inputs = None
    audio = None
    crash_report = None

    try:
        # Set up a new rendering system, host inputs linked to it in case it provides inputs too, and the buzzer
        renderer = Renderer(
            scale=args["scale"],
            pygame_palette=args["pygame_palette"],
            curses_cursor_mode=args["curses_cursor_mode"]
        )
        inputs = Inputs(args["keymap"] or DEFAULT_KEYMAP, renderer)
        audio = Audio()
        Runner(cpu, renderer, inputs, audio, clock_speed=args["clock_speed"]).run()
    except (RendererError, InputsError) as err:
        crash_report = "Unable to start: {}".format(err)
    except ExecutionError as err:
        crash_report = "Emulation halted.\n\n{}{}".format(APP_INTRO, err)
    finally:
        # The CPU has quit, so shut down the host plugins.  __del__ cannot be relied upon when using PyPy
        for plugin in audio, inputs, renderer:
            if plugin is not None:
                plugin.shutdown()

    if crash_report is not None:
        # Print after the renderer has gone, otherwise a terminal renderer would swallow it
        print(crash_report)
        return 1

    return 0
