# dashboard.py
import time
from dataclasses import replace
from typing import List

import matplotlib.pyplot as plt
import streamlit as st

from pong_core import Config, EventKind, Mode, PongSim, follow_ball
from pong_render import render_rgb


# -----------------------------
# Session-held match + history
# -----------------------------
class Match:
    def __init__(self, cfg: Config):
        self.sim = PongSim(cfg)
        self.speeds: List[float] = []
        self.rallies: List[int] = []
        self.hits = {"left": 0, "right": 0}
        self.walls = 0
        self.rally_ticks = 0
        self.flash = 0

    def step(self, autopilot: bool):
        sim = self.sim
        dy = follow_ball(sim.get_entity_state()) if autopilot else 0.0
        events = sim.tick(dy)
        if sim.get_mode() is not Mode.PLAYING:
            return events
        self.rally_ticks += 1
        self.flash = max(0, self.flash - 1)
        for ev in events:
            if ev.kind is EventKind.PADDLE_HIT:
                self.hits[ev.side.value] += 1
            elif ev.kind is EventKind.WALL_BOUNCE:
                self.walls += 1
            elif ev.kind is EventKind.GOAL:
                self.rallies.append(self.rally_ticks)
                self.rally_ticks = 0
                self.flash = 18
        self.speeds.append(sim.ball.speed)
        return events


# -----------------------------
# Streamlit App
# -----------------------------
st.set_page_config(layout="wide", page_title="Pong — Control Panel")
st.title("Pong — Headless Simulation Control Panel")

if "cfg" not in st.session_state:
    st.session_state.cfg = Config()
if "match" not in st.session_state:
    st.session_state.match = Match(st.session_state.cfg)

# Sidebar controls
st.sidebar.header("Controls")
run_col1, run_col2, run_col3 = st.sidebar.columns(3)
start = run_col1.button("▶ Start")
pause = run_col2.button("⏸ Pause/Resume")
reset = run_col3.button("⟲ Reset")

st.sidebar.header("Opponent")
opp_speed = st.sidebar.slider("Opponent speed (px/tick)", 1.0, 12.0,
                              value=float(st.session_state.cfg.opponent_speed), step=0.5)
autopilot = st.sidebar.checkbox("Autopilot left paddle", value=True)
ticks = st.sidebar.slider("Ticks per refresh", 1, 240, 60, 1)
seed = st.sidebar.number_input("Seed (new match)", min_value=0, value=0, step=1)

match = st.session_state.match
sim = match.sim
sim.set_opponent_speed(opp_speed)
st.session_state.cfg.opponent_speed = opp_speed

if start:
    if sim.get_mode() is Mode.MENU:
        sim.start()
    else:
        sim.set_mode(Mode.PLAYING)
if pause:
    sim.toggle_pause()
if reset:
    cfg = replace(st.session_state.cfg, seed=int(seed))
    st.session_state.match = Match(cfg)
    match = st.session_state.match
    sim = match.sim

left, right = st.columns([1, 1])

with left:
    st.subheader("Court")
    for _ in range(ticks):
        match.step(autopilot)
    img = render_rgb(sim.get_entity_state(), sim.cfg.width, sim.cfg.height, flash=match.flash > 0)
    st.image(img, channels="RGB", caption=f"mode: {sim.get_mode().value} • tick {sim.t}")
    if st.button("Reset scores"):
        sim.reset_scores()
        match.rallies.clear()
        match.rally_ticks = 0

with right:
    st.subheader("Scores & Rally Stats")
    score_l, score_r = sim.get_scores()
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Left", f"{score_l}")
    m2.metric("Right", f"{score_r}")
    m3.metric("Ball speed", f"{sim.ball.speed:.1f}")
    m4.metric("Wall bounces", f"{match.walls}")

    c1, c2 = st.columns(2)
    with c1:
        st.caption("Ball speed per tick")
        fig1, ax1 = plt.subplots()
        ax1.plot(match.speeds[-2000:])
        ax1.axhline(sim.cfg.max_speed, ls="--", color="grey")
        ax1.set_xlabel("Tick"); ax1.set_ylabel("Speed")
        st.pyplot(fig1, clear_figure=True)
    with c2:
        st.caption("Rally length (ticks)")
        fig2, ax2 = plt.subplots()
        if match.rallies:
            ax2.bar(range(1, len(match.rallies) + 1), match.rallies)
        ax2.set_xlabel("Rally"); ax2.set_ylabel("Ticks")
        st.pyplot(fig2, clear_figure=True)

    st.markdown(f"Paddle hits — left: **{match.hits['left']}**, right: **{match.hits['right']}**")

st.caption("Press ▶ Start to serve. The view advances by 'Ticks per refresh' on every rerun.")

if sim.get_mode() is Mode.PLAYING and st.sidebar.checkbox("Live", value=False):
    time.sleep(0.1)
    st.rerun()
