"""
Desktop Pong: you on the left (arrow keys or mouse), scripted opponent on the right.

Usage:
- python pong.py                       # default opponent speed 5
- python pong.py --opponent-speed 8 --volume 40
- python pong.py --seed 1 --verbose

Keys: Space/Enter start, Space pause/resume, R reset scores,
      [ / ] opponent speed, - / = volume, M mute, Esc quit.
"""
import argparse
import logging
import random
import sys

import numpy as np
import pygame

from pong_core import (EventKind, FixedStepper, Mode, PongSim, keys_delta,
                       pointer_delta)

FPS = 60
FLASH_FRAMES = 18
FONT_NAME = "arial"

WHITE = (240, 240, 240)
BG = (11, 14, 20)
DIM = (120, 120, 140)
PADDLE = (230, 247, 255)
ACCENT = (0, 230, 168)


class SoundBank:
    def __init__(self, volume=0.6):
        self.enabled = False
        self.volume = volume
        try:
            pygame.mixer.init(frequency=44100, size=-16, channels=2, buffer=512)
            self.enabled = True
        except pygame.error as e:
            print("Audio disabled:", e)

    def tone(self, freq, dur, gain, wave="sine", decay=0.02):
        sample_rate = 44100
        n = int(sample_rate * (dur + decay))
        t = np.linspace(0, dur + decay, n, endpoint=False, dtype=np.float32)
        if wave == "sine":
            w = np.sin(2 * np.pi * freq * t)
        elif wave == "sawtooth":
            w = 2 * (t * freq % 1) - 1
        elif wave == "triangle":
            w = 2 * np.abs(2 * (t * freq % 1) - 1) - 1
        else:
            w = np.sign(np.sin(2 * np.pi * freq * t))
        # exponential fade to silence over the whole tone
        env = np.exp(np.linspace(0, np.log(1e-4 / gain), n)).astype(np.float32) * gain
        audio = (w * env * 32767).astype(np.int16)
        return pygame.sndarray.make_sound(np.column_stack((audio, audio)))

    def play(self, freq, dur, gain, wave="sine"):
        if not self.enabled or self.volume <= 0:
            return
        snd = self.tone(freq, dur, gain, wave)
        snd.set_volume(self.volume)
        snd.play()

    def paddle_hit(self):
        self.play(900 + random.random() * 120, 0.06, 0.12, "sawtooth")

    def wall_bounce(self):
        self.play(420 + random.random() * 60, 0.05, 0.08, "sine")

    def score(self):
        if not self.enabled or self.volume <= 0:
            return
        base = 880
        parts = [self.tone(base, 0.12, 0.12), self.tone(base * 0.8, 0.12, 0.10), self.tone(base * 0.6, 0.16, 0.09)]
        ch = pygame.mixer.find_channel(True)
        ch.set_volume(self.volume)
        ch.play(parts[0])
        for p in parts[1:]:
            ch.queue(p)

    def start(self):
        if not self.enabled or self.volume <= 0:
            return
        ch = pygame.mixer.find_channel(True)
        ch.set_volume(self.volume)
        ch.play(self.tone(1200, 0.06, 0.1, "triangle"))
        ch.queue(self.tone(1500, 0.08, 0.12, "triangle"))


class EventDispatcher:
    """Maps simulation events onto sound and on-screen effects."""

    def __init__(self, sounds):
        self.sounds = sounds
        self.flash = 0

    def __call__(self, events):
        for ev in events:
            if ev.kind is EventKind.WALL_BOUNCE:
                self.sounds.wall_bounce()
            elif ev.kind is EventKind.PADDLE_HIT:
                self.sounds.paddle_hit()
            elif ev.kind is EventKind.GOAL:
                self.sounds.score()
                self.flash = FLASH_FRAMES


def draw_center_dashed_line(surface, w, h):
    dash_h = 16
    gap = 12
    x = w // 2 - 2
    for y in range(10, h, dash_h + gap):
        pygame.draw.rect(surface, (40, 44, 52), (x, y, 4, dash_h))


def draw_overlay(screen, font_big, font_small, title, lines):
    w, h = screen.get_size()
    shade = pygame.Surface((w, h), pygame.SRCALPHA)
    shade.fill((0, 0, 0, 150))
    screen.blit(shade, (0, 0))
    t = font_big.render(title, True, WHITE)
    screen.blit(t, (w//2 - t.get_width()//2, h//2 - 60))
    for i, line in enumerate(lines):
        s = font_small.render(line, True, DIM)
        screen.blit(s, (w//2 - s.get_width()//2, h//2 + 10 + i * 26))


def game(opponent_speed=5.0, volume=60, seed=None, fps=FPS, mute=False):
    pygame.init()
    sim = PongSim(seed=seed)
    sim.set_opponent_speed(opponent_speed)
    W, H = int(sim.cfg.width), int(sim.cfg.height)
    screen = pygame.display.set_mode((W, H), pygame.RESIZABLE)
    pygame.display.set_caption("Pong")
    frame = pygame.Surface((W, H))
    clock = pygame.time.Clock()
    font_small = pygame.font.SysFont(FONT_NAME, 20)
    font_big = pygame.font.SysFont(FONT_NAME, 54, bold=True)

    sounds = SoundBank(0 if mute else volume / 100)
    dispatch = EventDispatcher(sounds)
    stepper = FixedStepper(1.0 / FPS)
    pointer_y = None

    while True:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                pygame.quit(); return sim.get_scores()
            if event.type == pygame.MOUSEMOTION:
                pointer_y = event.pos[1]
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    pygame.quit(); return sim.get_scores()
                if event.key == pygame.K_SPACE or (event.key == pygame.K_RETURN and sim.get_mode() is Mode.MENU):
                    was_menu = sim.get_mode() is Mode.MENU
                    sim.toggle_pause()
                    if was_menu:
                        sounds.start()
                    pointer_y = None
                elif event.key == pygame.K_r:
                    sim.reset_scores()
                elif event.key == pygame.K_LEFTBRACKET:
                    sim.set_opponent_speed(max(0.0, sim.right.speed - 1))
                elif event.key == pygame.K_RIGHTBRACKET:
                    sim.set_opponent_speed(sim.right.speed + 1)
                elif event.key == pygame.K_MINUS:
                    sounds.volume = max(0.0, sounds.volume - 0.1)
                elif event.key == pygame.K_EQUALS:
                    sounds.volume = min(1.0, sounds.volume + 0.1)
                elif event.key == pygame.K_m:
                    sounds.volume = 0.0 if sounds.volume > 0 else volume / 100

        keys = pygame.key.get_pressed()
        up, down = keys[pygame.K_UP], keys[pygame.K_DOWN]

        for _ in range(stepper.advance(clock.get_time() / 1000.0)):
            if up or down:
                dy = keys_delta(up, down, sim.cfg.player_step)
            elif pointer_y is not None:
                dy = pointer_delta(sim.left, pointer_y, screen.get_height(), H)
            else:
                dy = 0
            dispatch(sim.tick(dy))

        # Draw at logical size, scale to the window
        st = sim.get_entity_state()
        frame.fill(BG)
        if dispatch.flash > 0:
            tint = pygame.Surface((W, H), pygame.SRCALPHA)
            tint.fill((0, 200, 160, 16))
            frame.blit(tint, (0, 0))
            dispatch.flash -= 1
        draw_center_dashed_line(frame, W, H)
        for p in (st.left_paddle, st.right_paddle):
            pygame.draw.rect(frame, PADDLE, (p.x, p.y, p.width, p.height), border_radius=4)
        pygame.draw.circle(frame, ACCENT, (st.ball.x, st.ball.y), st.ball.r)

        score_l, score_r = sim.get_scores()
        score_text = font_big.render(f"{score_l}   {score_r}", True, WHITE)
        frame.blit(score_text, (W//2 - score_text.get_width()//2, 20))
        info = f"Opponent {sim.right.speed:.0f}  [ ]  |  Volume {sounds.volume * 100:.0f}%  - =  |  R: reset"
        info_text = font_small.render(info, True, DIM)
        frame.blit(info_text, (20, H - 28))

        mode = sim.get_mode()
        if mode is Mode.MENU:
            draw_overlay(frame, font_big, font_small, "PONG",
                         ["Press Space to start", "Arrow keys or mouse to move"])
        elif mode is Mode.PAUSED:
            draw_overlay(frame, font_big, font_small, "Paused", ["Space to resume"])

        pygame.transform.smoothscale(frame, screen.get_size(), screen)
        pygame.display.flip()
        clock.tick(fps)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--opponent-speed", type=float, default=5.0)
    parser.add_argument("--volume", type=int, default=60)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--fps", type=int, default=FPS)
    parser.add_argument("--mute", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")
    final = game(args.opponent_speed, max(0, min(100, args.volume)), args.seed, args.fps, args.mute)
    print("Final score: %d - %d" % final)
    sys.exit(0)
