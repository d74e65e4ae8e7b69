import numpy as np

from pong_reinforce.errors import ConfigurationError
from pong_reinforce.model import Action

# Field is centred on the origin, the agent's paddle sits on the right edge.
WIDTH = 720.0
HEIGHT = 480.0
PADDLE_W = 0.027 * WIDTH
PADDLE_H = 0.185 * HEIGHT
BALL_SIZE = PADDLE_W / 2.0
BALL_SPEED = 4.0
PADDLE_SPEED = 4.0 * HEIGHT / WIDTH


class PongEnv:
    """Headless paddle-and-ball game, played to ``score_threshold`` points.

    The left paddle is a scripted opponent standing still in the middle that
    also returns any ball getting past it with probability
    ``trainer_hit_rate``. Reward is 0 on every step except the last one of a
    game: +1 if the agent won, -1 if it lost.
    """

    def __init__(self, score_threshold=11, trainer_hit_rate=0.5, seed=None):
        if int(score_threshold) < 1:
            raise ConfigurationError(f"score_threshold must be at least 1, got {score_threshold}")
        if not 0.0 <= trainer_hit_rate <= 1.0:
            raise ConfigurationError(f"trainer_hit_rate must be in [0, 1], got {trainer_hit_rate}")
        self.score_threshold = int(score_threshold)
        self.trainer_hit_rate = trainer_hit_rate
        self.rng = np.random.default_rng(seed)
        self.reset()

    def reset(self):
        self.pc_score = 0
        self.npc_score = 0
        self.pc_y = 0.0
        self.npc_y = 0.0
        self.ball_x = 0.0
        self.ball_y = 0.0
        self.ball_vx = self.rng.choice([-1.0, 1.0]) * BALL_SPEED
        self.ball_vy = self.rng.choice([-1.0, 1.0]) * BALL_SPEED
        self.steps = 0
        return self.get_state()

    def get_state(self):
        return np.array([self.ball_x, self.ball_y, self.ball_vx, self.ball_vy, self.npc_y], dtype=np.float64)

    def step(self, action):
        self.steps += 1
        self._move_npc(Action(action))
        self._handle_collisions()
        self._move_ball()

        if self.npc_score >= self.score_threshold:
            reward, done = 1.0, True
        elif self.pc_score >= self.score_threshold:
            reward, done = -1.0, True
        else:
            reward, done = 0.0, False
        info = {"pc_score": self.pc_score, "npc_score": self.npc_score, "steps": self.steps}
        return self.get_state(), reward, done, info

    def _move_npc(self, action):
        limit = HEIGHT / 2.0 - PADDLE_H / 2.0
        if action is Action.UP and self.npc_y <= limit:
            self.npc_y += PADDLE_SPEED
        elif action is Action.DOWN and self.npc_y >= -limit:
            self.npc_y -= PADDLE_SPEED

    def _handle_collisions(self):
        edge = WIDTH / 2.0 - BALL_SIZE / 2.0
        if self.ball_x < -edge and self.rng.random() <= self.trainer_hit_rate:
            self.ball_vx = abs(self.ball_vx)
            self.ball_x += self.ball_vx

        for paddle_x, paddle_y in ((-WIDTH / 2.0, self.pc_y), (WIDTH / 2.0, self.npc_y)):
            overlap_x = abs(self.ball_x - paddle_x) <= (PADDLE_W + BALL_SIZE) / 2.0
            overlap_y = abs(self.ball_y - paddle_y) <= (PADDLE_H + BALL_SIZE) / 2.0
            if overlap_x and overlap_y:
                # send it back towards the middle
                self.ball_vx = -np.sign(paddle_x) * abs(self.ball_vx)
                self.ball_x += self.ball_vx

    def _move_ball(self):
        if abs(self.ball_x) >= WIDTH / 2.0 - BALL_SIZE / 2.0:
            if self.ball_x < 0.0:
                self.npc_score += 1
            else:
                self.pc_score += 1
            self.ball_x = 0.0
            self.ball_y = 0.0
        if abs(self.ball_y) >= HEIGHT / 2.0 - BALL_SIZE / 2.0:
            self.ball_vy = -self.ball_vy

        self.ball_x += self.ball_vx
        self.ball_y += self.ball_vy
