import math
import random

import pytest

from pong_core import (HEIGHT, INITIAL_BALL_SPEED, MAX_BALL_SPEED, PADDLE_SPEED, WIDTH,
                       Ball, Config, Event, EventKind, FixedStepper, Goal, InvalidModeError,
                       Mode, Paddle, PaddleHit, PongSim, ScoreBoard, ServeReset, Side,
                       WallBounce, clamp, follow_ball, keys_delta, opponent_step,
                       pointer_delta, reflect, reset_ball)


def playing_sim(seed=1, **kw):
    sim = PongSim(Config(**kw), seed=seed)
    sim.set_mode("playing")
    return sim


def park_ball(sim, x, y, dx, dy, speed=None):
    b = sim.ball
    b.x, b.y, b.dx, b.dy = x, y, dx, dy
    if speed is not None:
        b.speed = speed


def serve_angle(ball):
    return abs(math.degrees(math.atan2(ball.dy, abs(ball.dx))))


def assert_fresh_serve(sim):
    b = sim.ball
    assert b.speed == INITIAL_BALL_SPEED
    assert b.x == WIDTH / 2
    assert b.y == HEIGHT / 2
    assert serve_angle(b) <= 30 + 1e-9


# --- helpers ---
def test_clamp():
    assert clamp(-3, 0, 10) == 0
    assert clamp(13, 0, 10) == 10
    assert clamp(4.5, 0, 10) == 4.5


def test_event_str():
    assert str(WallBounce()) == "WallBounce"
    assert str(PaddleHit("left")) == "PaddleHit(left)"
    assert Goal(Side.RIGHT) == Event(EventKind.GOAL, Side.RIGHT)


# --- mode machine ---
def test_new_sim_starts_in_menu_and_does_not_tick():
    sim = PongSim(seed=3)
    assert sim.get_mode() is Mode.MENU
    before = sim.get_entity_state()
    assert sim.tick(PADDLE_SPEED) == []
    assert sim.get_entity_state() == before
    assert sim.get_scores() == (0, 0)


def test_paused_tick_is_noop():
    sim = playing_sim()
    sim.tick()
    sim.set_mode(Mode.PAUSED)
    before = sim.get_entity_state()
    for _ in range(10):
        assert sim.tick(-PADDLE_SPEED) == []
    assert sim.get_entity_state() == before


@pytest.mark.parametrize("bad", ["", "PLAYING", "over", None, 3])
def test_set_mode_rejects_unknown_values(bad):
    sim = PongSim(seed=0)
    with pytest.raises(InvalidModeError):
        sim.set_mode(bad)
    assert sim.get_mode() is Mode.MENU


def test_toggle_pause_cycles_and_starts_from_menu():
    sim = PongSim(seed=0)
    assert sim.toggle_pause() is Mode.PLAYING
    assert sim.toggle_pause() is Mode.PAUSED
    assert sim.toggle_pause() is Mode.PLAYING


def test_start_serves_fresh_ball():
    sim = PongSim(seed=5)
    sim.ball.speed = 9
    assert sim.start() == [ServeReset()]
    assert sim.get_mode() is Mode.PLAYING
    assert_fresh_serve(sim)


# --- opponent ---
def test_opponent_speed_validation():
    sim = PongSim(seed=0)
    sim.set_opponent_speed(7)
    assert sim.right.speed == 7
    for bad in (-1, float("nan"), float("inf")):
        with pytest.raises(ValueError):
            sim.set_opponent_speed(bad)


def test_opponent_never_overshoots():
    sim = playing_sim(seed=11, opponent_speed=4)
    for _ in range(2000):
        before = sim.right.y
        offset = sim.ball.y - sim.right.center
        sim.tick()
        moved = sim.right.y - before
        assert abs(moved) <= 4 + 1e-9
        if moved:
            assert math.copysign(1, moved) == math.copysign(1, offset)


def test_opponent_step_stops_on_target():
    p = Paddle(768, 100, speed=5)
    b = Ball(400, 152)
    assert opponent_step(p, b) == 2
    b.y = 400
    assert opponent_step(p, b) == 5
    b.y = 150
    assert opponent_step(p, b) == 0


def test_opponent_speed_change_applies_next_tick():
    sim = playing_sim(seed=2)
    sim.right.y = 0
    park_ball(sim, 400, 450, 1, 0)
    sim.set_opponent_speed(10)
    sim.tick()
    assert sim.right.y == 10


# --- bounds ---
def test_player_paddle_stays_in_bounds_over_1000_ticks():
    sim = playing_sim(seed=4)
    for i in range(1000):
        sim.tick()
        assert 0 <= sim.left.y <= 400
        assert 0 <= sim.right.y <= 400


def test_player_delta_is_clamped_and_out_of_range_paddle_recovers():
    sim = playing_sim(seed=4)
    y0 = sim.left.y
    sim.tick(1000)
    assert sim.left.y == y0 + PADDLE_SPEED
    sim.left.y = -250
    sim.tick(0)
    assert sim.left.y == 0
    sim.tick(float("nan"))
    assert sim.left.y == 0
    for _ in range(200):
        sim.tick(PADDLE_SPEED)
    assert sim.left.y == HEIGHT - sim.left.height


# --- walls ---
def test_wall_bounce_top():
    sim = playing_sim()
    park_ball(sim, 400, 10, 3, -5)
    events = sim.tick()
    assert WallBounce() in events
    assert sim.ball.y == sim.ball.r
    assert sim.ball.dy == 5


def test_wall_bounce_bottom():
    sim = playing_sim()
    park_ball(sim, 400, 488, 3, 5)
    events = sim.tick()
    assert events == [WallBounce()]
    assert sim.ball.y == HEIGHT - sim.ball.r
    assert sim.ball.dy == -5


# --- paddles ---
def test_left_paddle_hit_scenario():
    sim = playing_sim()
    sim.left.y = 200
    park_ball(sim, 5, 250, -5, 0)
    events = sim.tick()
    assert PaddleHit(Side.LEFT) in events
    assert sim.ball.dx > 0
    assert sim.ball.x == sim.left.x + sim.left.width + sim.ball.r
    assert sim.get_scores() == (0, 0)


def test_right_paddle_hit():
    sim = playing_sim(opponent_speed=0)
    sim.right.y = 200
    park_ball(sim, 760, 250, 5, 0)
    events = sim.tick()
    assert events == [PaddleHit(Side.RIGHT)]
    assert sim.ball.dx < 0
    assert sim.ball.x == sim.right.x - sim.ball.r


def test_ball_moving_away_is_not_reflected():
    sim = playing_sim()
    sim.left.y = 200
    park_ball(sim, 30, 250, 5, 0)
    assert sim.tick() == []
    assert sim.ball.dx == 5


@pytest.mark.parametrize("side", [Side.LEFT, Side.RIGHT])
def test_center_hit_returns_flat(side):
    cfg = Config()
    paddle = Paddle(20, 200)
    ball = Ball(40, 250, dx=-5, dy=3)
    reflect(paddle, ball, side, cfg)
    assert ball.dy == 0
    assert ball.dx == pytest.approx((1 if side is Side.LEFT else -1) * ball.speed)


def test_edge_hit_angle_is_capped():
    cfg = Config()
    paddle = Paddle(20, 200)
    ball = Ball(40, 100, speed=5)
    reflect(paddle, ball, Side.LEFT, cfg)
    assert ball.speed == pytest.approx(5.3)
    assert math.degrees(math.atan2(ball.dy, ball.dx)) == pytest.approx(-65)


def test_reflect_speed_capped():
    cfg = Config()
    ball = Ball(40, 250, speed=MAX_BALL_SPEED - 0.1)
    reflect(Paddle(20, 200), ball, Side.LEFT, cfg)
    assert ball.speed == MAX_BALL_SPEED
    reflect(Paddle(20, 200), ball, Side.LEFT, cfg)
    assert ball.speed == MAX_BALL_SPEED


def test_speed_non_decreasing_within_rally():
    sim = playing_sim(seed=21, opponent_speed=12)
    last = sim.ball.speed
    for _ in range(5000):
        events = sim.tick(follow_ball(sim.get_entity_state()))
        if ServeReset() in events:
            assert sim.ball.speed == INITIAL_BALL_SPEED
        else:
            assert sim.ball.speed >= last
        assert INITIAL_BALL_SPEED <= sim.ball.speed <= MAX_BALL_SPEED
        last = sim.ball.speed


# --- scoring ---
def test_goal_right_serves_towards_left():
    sim = playing_sim(seed=8)
    sim.left.y = 0
    park_ball(sim, -5, 450, -5, 0)
    events = sim.tick()
    assert events == [Goal(Side.RIGHT), ServeReset()]
    assert sim.get_scores() == (0, 1)
    assert sim.ball.dx < 0
    assert_fresh_serve(sim)


def test_goal_left_serves_towards_right():
    sim = playing_sim(seed=8, opponent_speed=0)
    sim.right.y = 0
    park_ball(sim, 805, 450, 5, 0)
    events = sim.tick()
    assert events == [Goal(Side.LEFT), ServeReset()]
    assert sim.get_scores() == (1, 0)
    assert sim.ball.dx > 0


def test_no_goal_while_ball_overlaps_edge():
    sim = playing_sim()
    sim.left.y = 0
    park_ball(sim, 2, 450, -5, 0)
    events = sim.tick()
    assert sim.ball.x == -3
    assert not any(e.kind is EventKind.GOAL for e in events)


def test_at_most_one_goal_per_tick():
    sim = playing_sim(seed=13, opponent_speed=1)
    for _ in range(20000):
        events = sim.tick()
        assert sum(e.kind is EventKind.GOAL for e in events) <= 1
    assert sum(sim.get_scores()) > 0


def test_reset_scores_scenario():
    sim = playing_sim(seed=9)
    sim.scores.left, sim.scores.right = 3, 5
    park_ball(sim, 100, 40, -9, 7, speed=11)
    assert sim.reset_scores() == (0, 0)
    assert sim.get_scores() == (0, 0)
    assert_fresh_serve(sim)


def test_scoreboard_records_and_picks_receiver():
    sb = ScoreBoard()
    assert sb.serve_towards() is None
    assert sb.record_goal("left") == (1, 0)
    assert sb.serve_towards() is Side.RIGHT
    assert sb.record_goal(Side.RIGHT) == (1, 1)
    assert sb.serve_towards() is Side.LEFT
    assert sb.reset() == (0, 0)
    assert sb.serve_towards() is None


# --- serve ---
def test_serve_direction_and_angle():
    cfg = Config()
    rng = random.Random(0)
    ball = Ball(0, 0)
    dirs = set()
    for _ in range(200):
        reset_ball(ball, cfg, rng)
        dirs.add(math.copysign(1, ball.dx))
        assert serve_angle(ball) <= 30 + 1e-9
        assert math.hypot(ball.dx, ball.dy) == pytest.approx(INITIAL_BALL_SPEED)
    assert dirs == {-1.0, 1.0}
    for _ in range(50):
        assert reset_ball(ball, cfg, rng, "left").dx < 0
        assert reset_ball(ball, cfg, rng, Side.RIGHT).dx > 0


def test_same_seed_same_match():
    a, b = playing_sim(seed=42), playing_sim(seed=42)
    for _ in range(3000):
        assert a.tick(3) == b.tick(3)
    assert a.get_entity_state() == b.get_entity_state()
    assert a.get_scores() == b.get_scores()


def test_independent_sims_do_not_share_state():
    a, b = playing_sim(seed=1), PongSim(seed=1)
    a.set_opponent_speed(11)
    for _ in range(50):
        a.tick(-6)
    assert b.right.speed == Config().opponent_speed
    assert b.get_mode() is Mode.MENU


def test_entity_state_is_a_snapshot():
    sim = playing_sim()
    snap = sim.get_entity_state()
    snap.ball.x = -999
    snap.left_paddle.y = -999
    assert sim.ball.x != -999
    assert sim.left.y >= 0


# --- stepper ---
def test_fixed_stepper_accumulates():
    s = FixedStepper(step=0.01, max_steps=5)
    assert s.advance(0.005) == 0
    assert s.advance(0.006) == 1
    assert s.advance(0.025) == 2
    assert 0 <= s.alpha < 1


def test_fixed_stepper_caps_backlog():
    s = FixedStepper(step=0.01, max_steps=4)
    assert s.advance(1.0) == 4
    assert s.advance(0.0) <= 1
    with pytest.raises(ValueError):
        FixedStepper(step=0)


# --- adapters ---
def test_keys_delta():
    assert keys_delta(True, False) == -PADDLE_SPEED
    assert keys_delta(False, True) == PADDLE_SPEED
    assert keys_delta(True, True) == 0


def test_pointer_delta_maps_display_to_logical():
    p = Paddle(20, 200)
    assert pointer_delta(p, 250) == 0
    # half-height window: pointer 50 is logical 100
    assert pointer_delta(p, 50, display_h=250) == -150
    assert pointer_delta(p, 499) == 200


def test_follow_ball_deadzone():
    sim = PongSim(seed=0)
    sim.ball.y = sim.left.center + 3
    assert follow_ball(sim.get_entity_state()) == 0.0
    sim.ball.y = sim.left.center + 40
    assert follow_ball(sim.get_entity_state()) == 40
