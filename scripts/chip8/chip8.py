# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# https://chip-8.github.io/links/
#
# COMPATIBILITY QUIRKS TABLE
# https://games.gulrak.net/cadmium/chip8-opcode-table.html#quirk6
#
# COWGOD'S TECHNICAL REFERENCE
# http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
#
# TEST SUITE
# https://github.com/Timendus/chip8-test-suite
#
# This module is the VM core only: no window, no audio, no clock.
# The pygame front-end lives in chip8_host.py and drives it.


import os
import random
from collections import namedtuple
from enum import Enum
from functools import wraps


# ******************** STATIC SECTION
C8_FONTS = [0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
            0x20, 0x60, 0x20, 0x20, 0x70,  # 1
            0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
            0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
            0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
            0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
            0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
            0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
            0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
            0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
            0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
            0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
            0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
            0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
            0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
            0xF0, 0x80, 0xF0, 0x80, 0x80]  # F

FONT_ADDRESS = 0x000
FONT_GLYPH_SIZE = 5
ROM_START_ADDRESS = 0x200
MEMORY_SIZE = 4096
STACK_DEPTH = 16
REGISTER_COUNT = 16
KEY_COUNT = 16
SCREEN_HEIGHT = 32
SCREEN_WIDTH = 64
DEBUG = True if int(os.getenv('DEBUG', 0)) >= 1 else False

# conformance switches, the defaults describe this interpreter
#   wrap_sprites         sprite pixels past the right/bottom edge wrap around instead of being clipped
#   increment_index      Fx55/Fx65 leave I pointing past the last register transferred (I += x + 1)
#   add_immediate_carry  7xkk reports the carry in VF like 8xy4 does
#   vf_reset             8xy1/8xy2/8xy3 clear VF (COSMAC VIP)
#   shift_uses_vy        8xy6/8xyE shift Vy into Vx (COSMAC VIP)
#   flag_last            VF is written after the result, so the flag wins when the destination is VF
Quirks = namedtuple(
    "Quirks",
    ["wrap_sprites", "increment_index", "add_immediate_carry", "vf_reset", "shift_uses_vy", "flag_last"],
    defaults=[False, False, True, False, False, False],
)


# ******************** ERRORS SECTION
class Chip8Error(Exception):
    """base class of every fault the VM reports to the host, all of them are terminal"""
    def __init__(self, message, opcode=None, pc=None):
        super().__init__(message)
        self.message = message
        self.opcode = opcode
        self.pc = pc

    def __str__(self):
        text = self.message
        if self.opcode is not None:
            text += f" opcode=0x{self.opcode:04x}"
        if self.pc is not None:
            text += f" pc=0x{self.pc:03x}"
        return text

class DecodeFault(Chip8Error):
    pass

class StackUnderflow(Chip8Error):
    pass

class StackOverflow(Chip8Error):
    pass

class MemoryFault(Chip8Error):
    def __init__(self, message, address, **kwargs):
        super().__init__(message, **kwargs)
        self.address = address

class LoadTooLarge(Chip8Error):
    def __init__(self, message, size, **kwargs):
        super().__init__(message, **kwargs)
        self.size = size


# ******************** ALU SECTION
# every operation returns (result, flag), the caller decides the order VF and the result are written
def add(a, b):
    total = a + b
    return total & 0xFF, 1 if total > 0xFF else 0

def sub(a, b):
    return (a - b) & 0xFF, 1 if a >= b else 0

def shr(a):
    return a >> 1, a & 0x1

def shl(a):
    return (a << 1) & 0xFF, (a >> 7) & 0x1

def bcd(n):
    """hundreds, tens and ones digits of a byte"""
    return n // 100, (n // 10) % 10, n % 10


# ******************** MEMORY SECTION
# ********** WRAPS A LIST TO REPRESENT A STACK WITH A LIMITED SIZE OF 16 ADDRESSES
class Stack:
    def __init__(self, depth=STACK_DEPTH):
        self.addr_list = []
        self.depth = depth

    def __len__(self):
        return len(self.addr_list)

    def __iter__(self):
        return iter(self.addr_list)

    def append(self, address):
        if len(self.addr_list) >= self.depth:
            raise StackOverflow(f"The CHIP-8 stack can contain at most {self.depth} addresses. Limit exceeded")
        self.addr_list.append(address)

    def pop(self):
        if not self.addr_list:
            raise StackUnderflow("Return from subroutine with an empty call stack")
        return self.addr_list.pop()

# ********** WRAPS A BYTEARRAY TO REPRESENT THE MAIN MEMORY WITH A LIMITED SIZE OF 4KB
class Memory:
    """
    bounds checked 4KB address space
    the font is read only once the machine is built
    """
    def __init__(self):
        self.inner = bytearray(MEMORY_SIZE)
        self.inner[FONT_ADDRESS:FONT_ADDRESS+len(C8_FONTS)] = bytes(C8_FONTS)

    @staticmethod
    def _check(start, stop):
        if start < 0 or stop > MEMORY_SIZE or start > stop:
            bad = start if start < 0 or start >= MEMORY_SIZE else stop - 1
            raise MemoryFault(f"Access to 0x{bad:x} is outside of the address space", bad)

    @staticmethod
    def _bounds(key):
        if isinstance(key, slice):
            if key.step not in (None, 1):
                raise ValueError("Memory slices must be contiguous")
            return key.start, key.stop
        return key, key + 1

    def __getitem__(self, key):
        start, stop = self._bounds(key)
        self._check(start, stop)
        return self.inner[key]

    def __setitem__(self, key, value):
        start, stop = self._bounds(key)
        self._check(start, stop)
        if start < FONT_ADDRESS + len(C8_FONTS) and stop > FONT_ADDRESS:
            raise MemoryFault(f"Write to 0x{start:x} hits the read only font", start)
        if isinstance(key, slice) and len(value) != stop - start:
            raise ValueError("Memory slice assignment must not change the memory size")
        self.inner[key] = value

    def load_program(self, data):
        """copy a program image at ROM_START_ADDRESS, nothing is touched when it does not fit"""
        data = bytes(data)
        if ROM_START_ADDRESS + len(data) > MEMORY_SIZE:
            raise LoadTooLarge(
                f"A program of {len(data)} bytes does not fit in {MEMORY_SIZE - ROM_START_ADDRESS} bytes",
                len(data),
            )
        self.inner[ROM_START_ADDRESS:] = bytes(MEMORY_SIZE - ROM_START_ADDRESS)
        self.inner[ROM_START_ADDRESS:ROM_START_ADDRESS+len(data)] = data


# ******************** I/O SECTION
class Display:
    """64x32 monochrome framebuffer addressed [row][col]"""
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT):
        self.w, self.h = w, h
        self.pixels = [[0] * w for _ in range(h)]
        self.dirty = False

    def clear(self):
        for row in self.pixels:
            row[:] = [0] * self.w
        self.dirty = True

    def draw(self, x, y, sprite, wrap=False):
        """XOR a sprite at (x, y), return 1 if any lit pixel was switched off"""
        collision = 0
        for i, sprite_byte in enumerate(sprite):
            row = y + i
            if row >= self.h:
                if not wrap:
                    break
                row %= self.h
            for j in range(8):
                if not (sprite_byte >> (7 - j)) & 0x1:
                    continue
                col = x + j
                if col >= self.w:
                    if not wrap:
                        break
                    col %= self.w
                if self.pixels[row][col]:
                    collision = 1
                self.pixels[row][col] ^= 1
                self.dirty = True
        return collision

    def snapshot(self):
        self.dirty = False
        return tuple(tuple(row) for row in self.pixels)


# ******************** DECODE SECTION
class Op(Enum):
    SYS = "0nnn"
    CLS = "00E0"
    RET = "00EE"
    JP = "1nnn"
    CALL = "2nnn"
    SE_BYTE = "3xkk"
    SNE_BYTE = "4xkk"
    SE_REG = "5xy0"
    LD_BYTE = "6xkk"
    ADD_BYTE = "7xkk"
    LD_REG = "8xy0"
    OR = "8xy1"
    AND = "8xy2"
    XOR = "8xy3"
    ADD_REG = "8xy4"
    SUB = "8xy5"
    SHR = "8xy6"
    SUBN = "8xy7"
    SHL = "8xyE"
    SNE_REG = "9xy0"
    LD_I = "Annn"
    JP_V0 = "Bnnn"
    RND = "Cxkk"
    DRW = "Dxyn"
    SKP = "Ex9E"
    SKNP = "ExA1"
    LD_VX_DT = "Fx07"
    LD_VX_K = "Fx0A"
    LD_DT_VX = "Fx15"
    LD_ST_VX = "Fx18"
    ADD_I = "Fx1E"
    LD_F = "Fx29"
    LD_B = "Fx33"
    LD_I_VX = "Fx55"
    LD_VX_I = "Fx65"

Instruction = namedtuple("Instruction", ["op", "opcode", "x", "y", "n", "kk", "nnn"])

# groups identified by the first nibble alone
SINGLE_GROUPS = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}
# groups that need the last nibble (or the last byte) as well
SYSTEM_OPS = {0x00E0: Op.CLS, 0x00EE: Op.RET}
COMPARE_OPS = {0x5: Op.SE_REG, 0x9: Op.SNE_REG}
ALU_OPS = {
    0x0: Op.LD_REG, 0x1: Op.OR, 0x2: Op.AND, 0x3: Op.XOR, 0x4: Op.ADD_REG,
    0x5: Op.SUB, 0x6: Op.SHR, 0x7: Op.SUBN, 0xE: Op.SHL,
}
KEY_OPS = {0x9E: Op.SKP, 0xA1: Op.SKNP}
MISC_OPS = {
    0x07: Op.LD_VX_DT, 0x0A: Op.LD_VX_K, 0x15: Op.LD_DT_VX, 0x18: Op.LD_ST_VX, 0x1E: Op.ADD_I,
    0x29: Op.LD_F, 0x33: Op.LD_B, 0x55: Op.LD_I_VX, 0x65: Op.LD_VX_I,
}

# filled by the asm decorator, one entry per handled Op
MNEMONICS = {}


def decode(opcode):
    """turn a 16 bit opcode into an Instruction, raise DecodeFault if it is not a CHIP-8 instruction"""
    group = (opcode & 0xF000) >> 12
    if group == 0x0:
        op = SYSTEM_OPS.get(opcode, Op.SYS)
    elif group in COMPARE_OPS:
        op = COMPARE_OPS[group] if opcode & 0x000F == 0 else None
    elif group == 0x8:
        op = ALU_OPS.get(opcode & 0x000F)
    elif group == 0xE:
        op = KEY_OPS.get(opcode & 0x00FF)
    elif group == 0xF:
        op = MISC_OPS.get(opcode & 0x00FF)
    else:
        op = SINGLE_GROUPS[group]
    if op is None:
        raise DecodeFault(f"Unrecognized opcode 0x{opcode:04x}", opcode=opcode)
    return Instruction(
        op=op,
        opcode=opcode,
        x=(opcode & 0x0F00) >> 8,
        y=(opcode & 0x00F0) >> 4,
        n=opcode & 0x000F,
        kk=opcode & 0x00FF,
        nnn=opcode & 0x0FFF,
    )

def disassemble(opcode):
    ins = decode(opcode)
    return MNEMONICS[ins.op].format(**ins._asdict())


# ******************** UTILITIES SECTION
def asm(op, msg):
    """decorator to register the ASM of an instruction and print it out when DEBUG is on"""
    MNEMONICS[op] = msg
    def decorator(fn):
        @wraps(fn)
        def wrapper_fn(self, ins):
            if DEBUG: print(f"mem_addr: 0x{self.pc:04x}    instruction: " + msg.format(**ins._asdict()))
            return fn(self, ins)
        return wrapper_fn
    return decorator


# ******************** CPU SECTION
# key wait states, see _wait_keypress
Running = namedtuple("Running", [])
AwaitingKey = namedtuple("AwaitingKey", ["register"])
RUNNING = Running()


class Chip8:
    def __init__(self, quirks=None, rng=None):
        self.quirks = quirks if quirks is not None else Quirks()
        self.rng = rng if rng is not None else random.Random()
        self.mem = Memory()
        self.stack = Stack()
        self.display = Display()
        self.v_regs = [0] * REGISTER_COUNT
        self.keys = [False] * KEY_COUNT
        self.pc = ROM_START_ADDRESS
        self.idx = 0    # specify where the sprites reside in memory
        self.dt = 0     # delay timer, active when non-zero
        self.st = 0     # sound timer, active when non-zero
        self.state = RUNNING
        self.instructions = {
            Op.SYS: self._sys,
            Op.CLS: self._clear_screen,
            Op.RET: self._return,
            Op.JP: self._jump,
            Op.CALL: self._call_addr,
            Op.SE_BYTE: self._skip_if_eq,
            Op.SNE_BYTE: self._skip_if_not_eq,
            Op.SE_REG: self._skip_if_eq_regs,
            Op.LD_BYTE: self._set_vk,
            Op.ADD_BYTE: self._add_to_vk,
            Op.LD_REG: self._set_vx_to_vy,
            Op.OR: self._set_vx_or_vy,
            Op.AND: self._set_vx_and_vy,
            Op.XOR: self._set_vx_xor_vy,
            Op.ADD_REG: self._add_vx_vy,
            Op.SUB: self._sub_vx_vy,
            Op.SHR: self._shr,
            Op.SUBN: self._subn_vx_vy,
            Op.SHL: self._shl,
            Op.SNE_REG: self._skip_if_not_eq_regs,
            Op.LD_I: self._set_idx,
            Op.JP_V0: self._jump_plus,
            Op.RND: self._random_byte_and,
            Op.DRW: self._to_screen,
            Op.SKP: self._skip_if_pressed,
            Op.SKNP: self._skip_if_not_pressed,
            Op.LD_VX_DT: self._set_vx_dt,
            Op.LD_VX_K: self._wait_keypress,
            Op.LD_DT_VX: self._set_dt_vx,
            Op.LD_ST_VX: self._set_st,
            Op.ADD_I: self._add_to_idx,
            Op.LD_F: self._select_char,
            Op.LD_B: self._bcd_repr,
            Op.LD_I_VX: self._store_vregs,
            Op.LD_VX_I: self._load_vregs,
        }

    def __str__(self):
        return self.debug_snapshot()

    # ********** HOST FACING API
    def load_program(self, data):
        self.mem.load_program(data)

    def load_rom(self, path):
        """load ROM file from user specified path"""
        with open(path, mode='rb') as f:
            rom = f.read()
        self.load_program(rom)
        if DEBUG: print(f"The ROM at path {path} has been loaded successfully")

    def step(self):
        """execute exactly one instruction, any Chip8Error leaves with the opcode and pc attached"""
        if isinstance(self.state, AwaitingKey):
            if self._resolve_key_wait():
                self._goto_next_instruction()
            return
        pc, opcode = self.pc, None
        try:
            # fetch (each instruction is two bytes long)
            opcode = self.mem[pc] << 8 | self.mem[pc + 1]
            # decode + execute
            ins = decode(opcode)
            self.instructions[ins.op](ins)
        except Chip8Error as err:
            if err.opcode is None:
                err.opcode = opcode
            err.pc = pc
            raise
        # handlers that move the pc have already taken this increment into account
        self._goto_next_instruction()

    def cycle(self, count=1):
        for _ in range(count):
            self.step()

    def tick_timers(self):
        """called by the host at 60Hz"""
        if self.dt > 0:
            self.dt -= 1
        if self.st > 0:
            self.st -= 1

    def set_keys(self, pressed):
        """replace the whole keypad state with the given collection of held hex keys"""
        pressed = set(pressed)
        for key in pressed:
            if not 0 <= key < KEY_COUNT:
                raise ValueError(f"Key {key!r} is not a CHIP-8 hex key")
        self.keys = [key in pressed for key in range(KEY_COUNT)]

    def framebuffer(self):
        return self.display.snapshot()

    @property
    def dirty(self):
        """True when the framebuffer changed since the last framebuffer() call"""
        return self.display.dirty

    @property
    def sound_active(self):
        return self.st > 0

    @property
    def waiting_for_key(self):
        return isinstance(self.state, AwaitingKey)

    @property
    def registers(self):
        return tuple(self.v_regs)

    def debug_snapshot(self):
        header = " | ".join(f"V{r:X}" for r in range(REGISTER_COUNT))
        values = " | ".join(f"{v:02x}" for v in self.v_regs)
        return (
            f"REGISTERS | {header}\n"
            f"VALUES    | {values}\n"
            f"PC_REGISTER:0x{self.pc:03x} | IDX_REGISTER:0x{self.idx:03x} | DT:{self.dt} | ST:{self.st}\n"
            f"STACK:{[hex(a) for a in self.stack]}"
        )

    # ********** HELPERS
    def _goto_next_instruction(self):
        self.pc += 0x2

    def _set_with_flag(self, register, result, flag):
        """VF is written first so the result wins when register is VF itself, unless flag_last is set"""
        if self.quirks.flag_last:
            self.v_regs[register] = result
            self.v_regs[0xF] = flag
        else:
            self.v_regs[0xF] = flag
            self.v_regs[register] = result

    def _resolve_key_wait(self):
        for key, held in enumerate(self.keys):
            if held:
                self.v_regs[self.state.register] = key
                self.state = RUNNING
                return True
        return False

    # ********** INSTRUCTIONS
    @asm(Op.SYS, "SYS 0x{nnn:03x}")
    def _sys(self, ins):
        """machine code routine on the original hardware, ignored by interpreters"""

    @asm(Op.CLS, "CLS")
    def _clear_screen(self, ins):
        self.display.clear()

    @asm(Op.RET, "RET")
    def _return(self, ins):
        """return from a subroutine"""
        self.pc = self.stack.pop()

    @asm(Op.JP, "JP 0x{nnn:03x}")
    def _jump(self, ins):
        self.pc = ins.nnn - 0x2

    @asm(Op.CALL, "CALL 0x{nnn:03x}")
    def _call_addr(self, ins):
        self.stack.append(self.pc)
        self.pc = ins.nnn - 0x2

    @asm(Op.SE_BYTE, "SE V{x:X}, 0x{kk:02x}")
    def _skip_if_eq(self, ins):
        if self.v_regs[ins.x] == ins.kk:
            self._goto_next_instruction()

    @asm(Op.SNE_BYTE, "SNE V{x:X}, 0x{kk:02x}")
    def _skip_if_not_eq(self, ins):
        if self.v_regs[ins.x] != ins.kk:
            self._goto_next_instruction()

    @asm(Op.SE_REG, "SE V{x:X}, V{y:X}")
    def _skip_if_eq_regs(self, ins):
        if self.v_regs[ins.x] == self.v_regs[ins.y]:
            self._goto_next_instruction()

    @asm(Op.SNE_REG, "SNE V{x:X}, V{y:X}")
    def _skip_if_not_eq_regs(self, ins):
        if self.v_regs[ins.x] != self.v_regs[ins.y]:
            self._goto_next_instruction()

    @asm(Op.LD_BYTE, "LD V{x:X}, 0x{kk:02x}")
    def _set_vk(self, ins):
        """set the value of one of the 16 variable registers, Vx"""
        self.v_regs[ins.x] = ins.kk

    @asm(Op.ADD_BYTE, "ADD V{x:X}, 0x{kk:02x}")
    def _add_to_vk(self, ins):
        result, carry = add(self.v_regs[ins.x], ins.kk)
        if self.quirks.add_immediate_carry:
            self._set_with_flag(ins.x, result, carry)
        else:
            self.v_regs[ins.x] = result

    @asm(Op.LD_REG, "LD V{x:X}, V{y:X}")
    def _set_vx_to_vy(self, ins):
        self.v_regs[ins.x] = self.v_regs[ins.y]

    @asm(Op.OR, "OR V{x:X}, V{y:X}")
    def _set_vx_or_vy(self, ins):
        self.v_regs[ins.x] |= self.v_regs[ins.y]
        if self.quirks.vf_reset:
            self.v_regs[0xF] = 0

    @asm(Op.AND, "AND V{x:X}, V{y:X}")
    def _set_vx_and_vy(self, ins):
        self.v_regs[ins.x] &= self.v_regs[ins.y]
        if self.quirks.vf_reset:
            self.v_regs[0xF] = 0

    @asm(Op.XOR, "XOR V{x:X}, V{y:X}")
    def _set_vx_xor_vy(self, ins):
        self.v_regs[ins.x] ^= self.v_regs[ins.y]
        if self.quirks.vf_reset:
            self.v_regs[0xF] = 0

    @asm(Op.ADD_REG, "ADD V{x:X}, V{y:X}")
    def _add_vx_vy(self, ins):
        """set Vx = Vx + Vy, VF = carry"""
        self._set_with_flag(ins.x, *add(self.v_regs[ins.x], self.v_regs[ins.y]))

    @asm(Op.SUB, "SUB V{x:X}, V{y:X}")
    def _sub_vx_vy(self, ins):
        """set Vx = Vx - Vy, VF = NOT borrow"""
        self._set_with_flag(ins.x, *sub(self.v_regs[ins.x], self.v_regs[ins.y]))

    @asm(Op.SUBN, "SUBN V{x:X}, V{y:X}")
    def _subn_vx_vy(self, ins):
        """set Vx = Vy - Vx, VF = NOT borrow"""
        self._set_with_flag(ins.x, *sub(self.v_regs[ins.y], self.v_regs[ins.x]))

    @asm(Op.SHR, "SHR V{x:X}")
    def _shr(self, ins):
        operand = self.v_regs[ins.y if self.quirks.shift_uses_vy else ins.x]
        self._set_with_flag(ins.x, *shr(operand))

    @asm(Op.SHL, "SHL V{x:X}")
    def _shl(self, ins):
        operand = self.v_regs[ins.y if self.quirks.shift_uses_vy else ins.x]
        self._set_with_flag(ins.x, *shl(operand))

    @asm(Op.LD_I, "LD I, 0x{nnn:03x}")
    def _set_idx(self, ins):
        self.idx = ins.nnn

    @asm(Op.JP_V0, "JP V0, 0x{nnn:03x}")
    def _jump_plus(self, ins):
        self.pc = ins.nnn + self.v_regs[0x0] - 0x2

    @asm(Op.RND, "RND V{x:X}, 0x{kk:02x}")
    def _random_byte_and(self, ins):
        self.v_regs[ins.x] = self.rng.randint(0, 255) & ins.kk

    @asm(Op.DRW, "DRW V{x:X}, V{y:X}, {n}")
    def _to_screen(self, ins):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        x = self.v_regs[ins.x] % self.display.w
        y = self.v_regs[ins.y] % self.display.h
        sprite = self.mem[self.idx:self.idx+ins.n]
        self.v_regs[0xF] = self.display.draw(x, y, sprite, wrap=self.quirks.wrap_sprites)

    @asm(Op.SKP, "SKP V{x:X}")
    def _skip_if_pressed(self, ins):
        # only the low nibble names a key
        if self.keys[self.v_regs[ins.x] & 0xF]:
            self._goto_next_instruction()

    @asm(Op.SKNP, "SKNP V{x:X}")
    def _skip_if_not_pressed(self, ins):
        if not self.keys[self.v_regs[ins.x] & 0xF]:
            self._goto_next_instruction()

    @asm(Op.LD_VX_DT, "LD V{x:X}, DT")
    def _set_vx_dt(self, ins):
        self.v_regs[ins.x] = self.dt

    @asm(Op.LD_VX_K, "LD V{x:X}, K")
    def _wait_keypress(self, ins):
        """wait for a key press and store its value in Vx"""
        self.state = AwaitingKey(ins.x)
        if not self._resolve_key_wait():
            # stay on this instruction, step() moves past it once a key is held
            self.pc -= 0x2

    @asm(Op.LD_DT_VX, "LD DT, V{x:X}")
    def _set_dt_vx(self, ins):
        self.dt = self.v_regs[ins.x]

    @asm(Op.LD_ST_VX, "LD ST, V{x:X}")
    def _set_st(self, ins):
        self.st = self.v_regs[ins.x]

    @asm(Op.ADD_I, "ADD I, V{x:X}")
    def _add_to_idx(self, ins):
        self.idx = (self.idx + self.v_regs[ins.x]) & 0xFFFF

    @asm(Op.LD_F, "LD F, V{x:X}")
    def _select_char(self, ins):
        """set I to location of sprite for the low nibble of Vx"""
        self.idx = FONT_ADDRESS + (self.v_regs[ins.x] & 0xF) * FONT_GLYPH_SIZE

    @asm(Op.LD_B, "LD B, V{x:X}")
    def _bcd_repr(self, ins):
        """hundreds digit of Vx at I, tens digit at I+1, ones digit at I+2"""
        self.mem[self.idx:self.idx+3] = bcd(self.v_regs[ins.x])

    @asm(Op.LD_I_VX, "LD [I], V{x:X}")
    def _store_vregs(self, ins):
        """store registers V0 through Vx (included) in memory starting at location I"""
        self.mem[self.idx:self.idx+ins.x+1] = self.v_regs[:ins.x+1]
        if self.quirks.increment_index:
            self.idx = (self.idx + ins.x + 1) & 0xFFFF

    @asm(Op.LD_VX_I, "LD V{x:X}, [I]")
    def _load_vregs(self, ins):
        """read registers V0 through Vx (included) from memory starting at location I"""
        self.v_regs[:ins.x+1] = list(self.mem[self.idx:self.idx+ins.x+1])
        if self.quirks.increment_index:
            self.idx = (self.idx + ins.x + 1) & 0xFFFF
