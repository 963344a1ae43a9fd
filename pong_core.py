"""
Headless Pong simulation core.

One human paddle on the left, a scripted chaser on the right. Everything in
here is pure Python and advances by exactly one fixed step per `tick()`;
rendering, sound and input capture live in `pong.py` / `dashboard.py` and
only ever see the events and snapshots returned from here.
"""
import copy
import enum
import logging
import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

WIDTH, HEIGHT = 800, 500
PADDLE_WIDTH, PADDLE_HEIGHT = 12, 100
PADDLE_MARGIN = 20
PADDLE_SPEED = 6
BALL_RADIUS = 8
INITIAL_BALL_SPEED = 5.0
BALL_SPEED_INCREMENT = 0.3
MAX_BALL_SPEED = 14.0
MAX_BOUNCE_DEG = 65.0
SERVE_ANGLE_DEG = 30.0
OPPONENT_SPEED = 5.0


def clamp(v, a, b):
    return max(a, min(b, v))


def deg2rad(deg):
    return deg * math.pi / 180.0


def sign(v):
    if v > 0:
        return 1
    if v < 0:
        return -1
    return 0


# --- Config ---
@dataclass
class Config:
    width: float = WIDTH
    height: float = HEIGHT
    paddle_w: float = PADDLE_WIDTH
    paddle_h: float = PADDLE_HEIGHT
    paddle_margin: float = PADDLE_MARGIN
    player_step: float = PADDLE_SPEED
    ball_radius: float = BALL_RADIUS
    initial_speed: float = INITIAL_BALL_SPEED
    speed_increment: float = BALL_SPEED_INCREMENT
    max_speed: float = MAX_BALL_SPEED
    max_bounce_deg: float = MAX_BOUNCE_DEG
    serve_angle_deg: float = SERVE_ANGLE_DEG
    opponent_speed: float = OPPONENT_SPEED
    seed: Optional[int] = None


# --- Entity state ---
@dataclass
class Paddle:
    x: float
    y: float
    width: float = PADDLE_WIDTH
    height: float = PADDLE_HEIGHT
    speed: float = 0.0

    @property
    def center(self):
        return self.y + self.height / 2

    def clamp_to(self, arena_h):
        self.y = clamp(self.y, 0, arena_h - self.height)


@dataclass
class Ball:
    x: float
    y: float
    r: float = BALL_RADIUS
    speed: float = INITIAL_BALL_SPEED
    dx: float = 0.0
    dy: float = 0.0


@dataclass(frozen=True)
class EntityState:
    ball: Ball
    left_paddle: Paddle
    right_paddle: Paddle


# --- Events ---
class Side(str, enum.Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def opponent(self):
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


class EventKind(str, enum.Enum):
    WALL_BOUNCE = "WallBounce"
    PADDLE_HIT = "PaddleHit"
    GOAL = "Goal"
    SERVE_RESET = "ServeReset"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    side: Optional[Side] = None

    def __str__(self):
        if self.side is None:
            return self.kind.value
        return f"{self.kind.value}({self.side.value})"


def WallBounce():
    return Event(EventKind.WALL_BOUNCE)


def PaddleHit(side):
    return Event(EventKind.PADDLE_HIT, Side(side))


def Goal(side):
    return Event(EventKind.GOAL, Side(side))


def ServeReset():
    return Event(EventKind.SERVE_RESET)


# --- Game mode ---
class InvalidModeError(ValueError):
    pass


class Mode(str, enum.Enum):
    MENU = "menu"
    PLAYING = "playing"
    PAUSED = "paused"


class ModeMachine:
    """menu -> playing <-> paused. Only explicit actions move it."""

    def __init__(self):
        self.mode = Mode.MENU

    @staticmethod
    def parse(mode):
        if isinstance(mode, Mode):
            return mode
        try:
            return Mode(mode)
        except ValueError:
            raise InvalidModeError(f"unknown game mode: {mode!r}") from None

    def set(self, mode):
        new = self.parse(mode)
        if new is not self.mode:
            logger.info("mode %s -> %s", self.mode.value, new.value)
        self.mode = new
        return new

    def toggle_pause(self):
        if self.mode is Mode.PLAYING:
            return self.set(Mode.PAUSED)
        if self.mode is Mode.PAUSED:
            return self.set(Mode.PLAYING)
        return self.mode

    @property
    def running(self):
        return self.mode is Mode.PLAYING


# --- Scoring ---
@dataclass
class ScoreBoard:
    left: int = 0
    right: int = 0
    last_scorer: Optional[Side] = field(default=None, compare=False)

    def record_goal(self, side) -> Tuple[int, int]:
        side = Side(side)
        if side is Side.LEFT:
            self.left += 1
        else:
            self.right += 1
        self.last_scorer = side
        logger.debug("goal %s -> %d:%d", side.value, self.left, self.right)
        return self.totals()

    def serve_towards(self):
        # the side that just conceded receives the next serve
        if self.last_scorer is None:
            return None
        return self.last_scorer.opponent

    def reset(self):
        self.left = 0
        self.right = 0
        self.last_scorer = None
        return self.totals()

    def totals(self):
        return self.left, self.right


# --- Physics ---
def reset_ball(ball, cfg, rng, serving_towards=None):
    ball.x = cfg.width / 2
    ball.y = cfg.height / 2
    ball.speed = cfg.initial_speed
    angle = deg2rad(rng.uniform(-cfg.serve_angle_deg, cfg.serve_angle_deg))
    if serving_towards is None:
        direction = -1 if rng.random() < 0.5 else 1
    else:
        direction = -1 if Side(serving_towards) is Side.LEFT else 1
    ball.dx = direction * ball.speed * math.cos(angle)
    ball.dy = ball.speed * math.sin(angle)
    return ball


def reflect(paddle, ball, side, cfg):
    """Return the ball off `paddle` with an angle set by where it struck.

    Centre hits come back flat, edge hits at up to `max_bounce_deg`. Every
    return adds `speed_increment` up to `max_speed`.
    """
    rel = clamp((ball.y - paddle.center) / (paddle.height / 2), -1, 1)
    bounce = rel * deg2rad(cfg.max_bounce_deg)
    ball.speed = min(cfg.max_speed, ball.speed + cfg.speed_increment)
    direction = 1 if Side(side) is Side.LEFT else -1
    ball.dx = direction * ball.speed * math.cos(bounce)
    ball.dy = ball.speed * math.sin(bounce)
    return ball


def opponent_step(paddle, ball):
    target = ball.y - paddle.height / 2
    diff = target - paddle.y
    return sign(diff) * min(paddle.speed, abs(diff))


def _overlaps_vertically(ball, paddle):
    return ball.y + ball.r >= paddle.y and ball.y - ball.r <= paddle.y + paddle.height


# --- Engine ---
class PongSim:
    def __init__(self, config: Optional[Config] = None, seed=None):
        self.cfg = copy.copy(config) if config is not None else Config()
        if seed is None:
            seed = self.cfg.seed
        self.rng = random.Random(seed)
        c = self.cfg
        mid = (c.height - c.paddle_h) / 2
        self.left = Paddle(c.paddle_margin, mid, c.paddle_w, c.paddle_h)
        self.right = Paddle(c.width - c.paddle_margin - c.paddle_w, mid,
                            c.paddle_w, c.paddle_h, speed=c.opponent_speed)
        self.ball = Ball(c.width / 2, c.height / 2, r=c.ball_radius, speed=c.initial_speed)
        self.scores = ScoreBoard()
        self.modes = ModeMachine()
        self.t = 0
        reset_ball(self.ball, c, self.rng)

    # public API
    def tick(self, player_delta=0.0) -> List[Event]:
        if not self.modes.running:
            return []
        c = self.cfg
        events: List[Event] = []

        # anything a caller poked out of range gets pulled back first
        self.left.clamp_to(c.height)
        self.right.clamp_to(c.height)

        # player
        if not math.isfinite(player_delta):
            player_delta = 0.0
        self.left.y += clamp(player_delta, -c.player_step, c.player_step)
        self.left.clamp_to(c.height)

        # opponent
        self.right.y += opponent_step(self.right, self.ball)
        self.right.clamp_to(c.height)

        # ball
        b = self.ball
        b.x += b.dx
        b.y += b.dy

        # walls
        if b.y - b.r <= 0:
            b.y = b.r
            b.dy = -b.dy
            events.append(WallBounce())
        elif b.y + b.r >= c.height:
            b.y = c.height - b.r
            b.dy = -b.dy
            events.append(WallBounce())

        # paddles
        lp, rp = self.left, self.right
        if b.dx < 0 and b.x - b.r <= lp.x + lp.width and _overlaps_vertically(b, lp):
            b.x = lp.x + lp.width + b.r
            reflect(lp, b, Side.LEFT, c)
            events.append(PaddleHit(Side.LEFT))
        if b.dx > 0 and b.x + b.r >= rp.x and _overlaps_vertically(b, rp):
            b.x = rp.x - b.r
            reflect(rp, b, Side.RIGHT, c)
            events.append(PaddleHit(Side.RIGHT))

        # score
        scorer = None
        if b.x + b.r < 0:
            scorer = Side.RIGHT
        elif b.x - b.r > c.width:
            scorer = Side.LEFT
        if scorer is not None:
            self.scores.record_goal(scorer)
            events.append(Goal(scorer))
            reset_ball(b, c, self.rng, self.scores.serve_towards())
            events.append(ServeReset())

        self.t += 1
        return events

    def start(self):
        self.modes.set(Mode.PLAYING)
        self.right.speed = self.cfg.opponent_speed
        reset_ball(self.ball, self.cfg, self.rng)
        return [ServeReset()]

    def toggle_pause(self):
        if self.modes.mode is Mode.MENU:
            self.start()
        else:
            self.modes.toggle_pause()
        return self.modes.mode

    def get_entity_state(self) -> EntityState:
        return EntityState(copy.copy(self.ball), copy.copy(self.left), copy.copy(self.right))

    def get_scores(self) -> Tuple[int, int]:
        return self.scores.totals()

    def set_mode(self, mode):
        return self.modes.set(mode)

    def get_mode(self) -> Mode:
        return self.modes.mode

    def set_opponent_speed(self, speed):
        speed = float(speed)
        if not math.isfinite(speed) or speed < 0:
            raise ValueError(f"opponent speed must be a non-negative number, got {speed!r}")
        self.cfg.opponent_speed = speed
        self.right.speed = speed

    def reset_scores(self):
        totals = self.scores.reset()
        reset_ball(self.ball, self.cfg, self.rng)
        logger.info("scores reset")
        return totals


# --- Scheduling ---
class FixedStepper:
    """Turns wall-clock frame time into a whole number of fixed ticks."""

    def __init__(self, step=1 / 60, max_steps=5):
        if step <= 0:
            raise ValueError("step must be positive")
        self.step = step
        self.max_steps = max_steps
        self._accum = 0.0

    def advance(self, elapsed):
        self._accum += max(0.0, elapsed)
        steps = 0
        while self._accum >= self.step and steps < self.max_steps:
            self._accum -= self.step
            steps += 1
        if steps == self.max_steps:
            # drop backlog instead of spiralling after a long stall
            self._accum = min(self._accum, self.step)
        return steps

    @property
    def alpha(self):
        return self._accum / self.step


# --- Input adapters ---
def keys_delta(up, down, step=PADDLE_SPEED):
    dy = 0
    if up:
        dy -= step
    if down:
        dy += step
    return dy


def pointer_delta(paddle, pointer_y, display_h=HEIGHT, arena_h=HEIGHT):
    logical_y = pointer_y * (arena_h / display_h)
    target = clamp(logical_y - paddle.height / 2, 0, arena_h - paddle.height)
    return target - paddle.y


def follow_ball(state: EntityState, deadzone=6):
    p, b = state.left_paddle, state.ball
    off = b.y - p.center
    if abs(off) <= deadzone:
        return 0.0
    return off
