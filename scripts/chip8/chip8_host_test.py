import os
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
import unittest
from collections import defaultdict

import pygame
from pygame.locals import K_1, K_a, K_z

from chip8 import Chip8
from chip8_host import KEY_MAPPINGS, Screen, Timing, build_quirks, get_args, pressed_keys, run_frame


def program(*opcodes):
    return b"".join(opcode.to_bytes(2, "big") for opcode in opcodes)

def offscreen(scale=2):
    return Screen(s=scale, surface=pygame.Surface((64 * scale, 32 * scale), 0, 32))

def lit(screen, x, y):
    return screen.surface.get_at((x * screen.scale, y * screen.scale)) == screen.foreground


class TestKeys(unittest.TestCase):
    def test_every_hex_key_is_mapped(self):
        self.assertEqual(sorted(KEY_MAPPINGS.values()), list(range(16)))

    def test_pressed_keys(self):
        state = defaultdict(bool, {K_1: True, K_a: True, K_z: True})
        self.assertEqual(pressed_keys(state), {0x1, 0xA})

    def test_nothing_pressed(self):
        self.assertEqual(pressed_keys(defaultdict(bool)), set())


class TestTiming(unittest.TestCase):
    def test_steps_and_ticks(self):
        timing = Timing(speed=500)
        self.assertEqual(timing.advance(0.25), (125, 15))
        self.assertEqual(timing.advance(0.25), (125, 15))

    def test_leftover_time_is_carried(self):
        timing = Timing(speed=4, timer_hz=2)
        self.assertEqual(timing.advance(0.125), (0, 0))
        self.assertEqual(timing.advance(0.125), (1, 0))
        self.assertEqual(timing.advance(0.25), (1, 1))

    def test_speed_must_be_positive(self):
        with self.assertRaises(ValueError):
            Timing(speed=0)


class TestArgs(unittest.TestCase):
    def test_defaults(self):
        args = get_args(["-f", "pong.ch8"])
        self.assertEqual(args.file, "pong.ch8")
        self.assertEqual(args.speed, 500)
        quirks = build_quirks(args)
        self.assertFalse(quirks.wrap_sprites)
        self.assertFalse(quirks.increment_index)
        self.assertTrue(quirks.add_immediate_carry)
        self.assertFalse(quirks.flag_last)

    def test_quirk_flags(self):
        args = get_args(["-f", "pong.ch8", "--wrap", "--increment-index", "--no-add-carry", "--vf-reset", "--shift-vy", "--flag-last"])
        quirks = build_quirks(args)
        self.assertTrue(quirks.wrap_sprites)
        self.assertTrue(quirks.increment_index)
        self.assertFalse(quirks.add_immediate_carry)
        self.assertTrue(quirks.vf_reset)
        self.assertTrue(quirks.shift_uses_vy)
        self.assertTrue(quirks.flag_last)


class TestScreen(unittest.TestCase):
    def test_render(self):
        screen = offscreen()
        frame = [[0] * 64 for _ in range(32)]
        frame[3][5] = 1
        screen.render(frame)
        self.assertTrue(lit(screen, 5, 3))
        self.assertFalse(lit(screen, 0, 0))


class TestRunFrame(unittest.TestCase):
    def test_frame(self):
        # 208 holds the sprite byte 0x80
        chip = Chip8()
        chip.load_program(program(0x6A05, 0xFA15, 0xA208, 0xD011, 0x8000))
        screen = offscreen()
        timing = Timing(speed=4, timer_hz=2)
        redrawn = run_frame(chip, screen, timing, 1.0, defaultdict(bool, {K_1: True}))
        self.assertTrue(redrawn)
        self.assertEqual(chip.pc, 0x208)
        self.assertEqual(chip.dt, 3)
        self.assertTrue(chip.keys[1])
        self.assertTrue(lit(screen, 0, 0))
        self.assertFalse(run_frame(chip, screen, timing, 0.0, defaultdict(bool)))
        self.assertFalse(chip.keys[1])


if __name__ == "__main__":
    unittest.main()
