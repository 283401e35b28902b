# pygame front-end for the VM core in chip8.py
# it owns everything the core does not: window, keyboard mapping, pacing and the command line


import argparse
import sys

import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame
from pygame.locals import (
    K_0, K_1, K_2, K_3,
    K_4, K_5, K_6, K_7,
    K_8, K_9, K_a, K_b,
    K_c, K_d, K_e, K_f,
    K_ESCAPE, KEYDOWN, QUIT,
)

from chip8 import SCREEN_HEIGHT, SCREEN_WIDTH, Chip8, Chip8Error, Quirks


# ******************** STATIC SECTION
KEY_MAPPINGS = {
    K_0: 0x0,
    K_1: 0x1,
    K_2: 0x2,
    K_3: 0x3,
    K_4: 0x4,
    K_5: 0x5,
    K_6: 0x6,
    K_7: 0x7,
    K_8: 0x8,
    K_9: 0x9,
    K_a: 0xA,
    K_b: 0xB,
    K_c: 0xC,
    K_d: 0xD,
    K_e: 0xE,
    K_f: 0xF,
}

INSTRUCTIONS_PER_SECOND = 500
TIMER_HZ = 60
FPS = 300
SCALE = 15
BLUE = pygame.Color(80,69,155,255)
LIGHT_BLUE = pygame.Color(136,126,203,255)


# ******************** UTILITIES SECTION
def get_args(argv=None):
    parser = argparse.ArgumentParser(description="CHIP-8 interpreter")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    parser.add_argument("--speed", type=int, default=INSTRUCTIONS_PER_SECOND, help="instructions per second")
    parser.add_argument("--scale", type=int, default=SCALE, help="size in pixels of a CHIP-8 pixel")
    parser.add_argument("--wrap", action="store_true", help="wrap sprites around the screen edges instead of clipping them")
    parser.add_argument("--increment-index", action="store_true", help="Fx55/Fx65 advance I past the last register")
    parser.add_argument("--no-add-carry", action="store_true", help="7xkk leaves VF untouched")
    parser.add_argument("--vf-reset", action="store_true", help="8xy1/8xy2/8xy3 clear VF")
    parser.add_argument("--shift-vy", action="store_true", help="8xy6/8xyE shift Vy into Vx")
    parser.add_argument("--flag-last", action="store_true", help="arithmetic and shift instructions write VF after the result")
    return parser.parse_args(argv)

def build_quirks(args):
    return Quirks(
        wrap_sprites=args.wrap,
        increment_index=args.increment_index,
        add_immediate_carry=not args.no_add_carry,
        vf_reset=args.vf_reset,
        shift_uses_vy=args.shift_vy,
        flag_last=args.flag_last,
    )

def pressed_keys(key_state):
    """translate a pygame.key.get_pressed() style lookup into the set of held CHIP-8 keys"""
    return {hex_key for pg_key, hex_key in KEY_MAPPINGS.items() if key_state[pg_key]}


# ******************** I/O SECTION
class Screen:
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT, s=SCALE, bg_color=BLUE, fg_color=LIGHT_BLUE, surface=None):
        self.w, self.h, self.scale = w, h, s
        self.background = bg_color
        self.foreground = fg_color
        if surface is None:
            surface = pygame.display.set_mode((w * self.scale, h * self.scale))
        self.surface = surface
        self.surface.fill(self.background)

    def render(self, framebuffer):
        """paint a [row][col] framebuffer, the change is visible after refresh"""
        self.surface.fill(self.background)
        for y, row in enumerate(framebuffer):
            for x, pixel in enumerate(row):
                if pixel:
                    pygame.draw.rect(
                        self.surface,
                        self.foreground,
                        (x * self.scale, y * self.scale, self.scale, self.scale)
                    )

    @staticmethod
    def refresh():
        pygame.display.flip()


# ******************** TIMING SECTION
class Timing:
    """
    splits wall clock time between instruction steps and 60Hz timer ticks
    leftovers are carried to the next call so no time is lost between frames
    """
    def __init__(self, speed=INSTRUCTIONS_PER_SECOND, timer_hz=TIMER_HZ):
        if speed <= 0:
            raise ValueError("speed must be a positive number of instructions per second")
        self.speed = speed
        self.timer_hz = timer_hz
        self.step_time = 0.0
        self.tick_time = 0.0

    def advance(self, elapsed):
        """return how many (steps, ticks) are due after elapsed seconds"""
        self.step_time += elapsed
        self.tick_time += elapsed
        steps = int(self.step_time * self.speed)
        ticks = int(self.tick_time * self.timer_hz)
        self.step_time -= steps / self.speed
        self.tick_time -= ticks / self.timer_hz
        return steps, ticks


def run_frame(chip, screen, timing, elapsed, key_state):
    """feed one frame of input and time to the VM, return True if the screen was redrawn"""
    chip.set_keys(pressed_keys(key_state))
    steps, ticks = timing.advance(elapsed)
    chip.cycle(steps)
    for _ in range(ticks):
        chip.tick_timers()
    if chip.dirty:
        screen.render(chip.framebuffer())
        return True
    return False


# ******************** ENTRY POINT SECTION
def main(argv=None):
    args = get_args(argv)
    # pygame initialization
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_caption(os.path.basename(args.file))
    # IO
    screen = Screen(s=args.scale)
    # CPU
    chip = Chip8(quirks=build_quirks(args))
    timing = Timing(args.speed)
    try:
        chip.load_rom(args.file)
        # emulation loop
        run = True
        while run:
            elapsed = clock.tick(FPS) / 1000
            for event in pygame.event.get():
                if event.type == QUIT or (event.type == KEYDOWN and event.key == K_ESCAPE):
                    run = False
            if run_frame(chip, screen, timing, elapsed, pygame.key.get_pressed()):
                screen.refresh()
    except Chip8Error as err:
        sys.exit(f"********** THE EMULATOR CRASHED WITH THE FOLLOWING STATE\n{err}\n{chip}")
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
