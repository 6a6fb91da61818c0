#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import unittest
from clchip.audio.a_null import Audio
from clchip.constants import DEFAULT_KEYMAP
from clchip.inputs.i_null import Inputs, InputsError
from clchip.renderers.r_null import Renderer


class TestInputs(unittest.TestCase):
    def setUp(self):
        self.renderer = Renderer()

    def test_inputs_default_keymap(self):
        inputs = Inputs(DEFAULT_KEYMAP, self.renderer)
        self.assertEqual(0x10, len(inputs.keymap_dict))
        self.assertEqual(0x0, inputs.keymap_dict[ord("x")])
        self.assertEqual(0x1, inputs.keymap_dict[ord("1")])
        self.assertEqual(0xF, inputs.keymap_dict[ord("v")])
        self.assertEqual(ord("x"), inputs.key_codes[0x0])
        self.assertEqual(ord("v"), inputs.key_codes[0xF])
        self.assertFalse(inputs.process_messages())
        self.assertFalse(inputs.is_key_down(0x0))

    def test_inputs_lowercase(self):
        keymap = ",".join(str(ord(char)) for char in "X123QWEASDZC4RFV")
        inputs = Inputs(keymap, self.renderer, force_lowercase=True)
        self.assertEqual(0x0, inputs.keymap_dict[ord("x")])
        self.assertNotIn(ord("X"), inputs.keymap_dict)

    def test_inputs_bad_keymaps(self):
        for keymap in "1,2,3", ",".join(["1"] * 16), "a,b,c,d,e,f,g,h,i,j,k,l,m,n,o,p":
            self.assertRaises(InputsError, Inputs, keymap, self.renderer)


class TestRenderer(unittest.TestCase):
    def test_renderer_frame(self):
        renderer = Renderer(scale=3)
        self.assertEqual(3, renderer.scale)
        renderer.set_resolution(4, 2)
        self.assertEqual(bytearray(8), renderer.frame)
        renderer.draw_frame(bytes((1, 0, 0, 1, 0, 1, 1, 0)))
        self.assertEqual("0100000100010100", renderer.frame.hex())
        renderer.refresh_display(True)
        renderer.set_title("Title")
        self.assertEqual("Title", renderer.title)
        renderer.shutdown()


class TestAudio(unittest.TestCase):
    def test_audio_null(self):
        audio = Audio()
        self.assertTrue(audio.is_null())
        self.assertFalse(audio.buzzer_enabled)
        audio.enable_buzzer(True)
        self.assertTrue(audio.buzzer_enabled)
        audio.enable_buzzer(False)
        self.assertFalse(audio.buzzer_enabled)
        audio.shutdown()


if __name__ == "__main__":
    unittest.main()
