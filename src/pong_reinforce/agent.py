import numpy as np

from pong_reinforce.errors import ConfigurationError, ReinforceError
from pong_reinforce.model import PolicyNetwork, sample_action
from pong_reinforce.reinforce import Reinforce
from pong_reinforce.reinforce_torch import ReinforceTorch
from pong_reinforce.traj import Traj

TRAINERS = {
    "numpy": Reinforce,
    "torch": ReinforceTorch,
}


class Agent:
    """Owns the policy, the episode buffer and the trainer.

    The environment drives it once per tick: ``sample_action`` with the
    current state, then ``record_reward`` for that same step (``done=True``
    on the last one), then ``maybe_train``.
    """

    def __init__(self, discount=0.99, learning_rate=0.15, init_range=0.05, seed=None, max_steps=None, backend="numpy"):
        if backend not in TRAINERS:
            raise ConfigurationError(f"Unknown backend {backend!r}, expected one of {sorted(TRAINERS)}")
        self.rng = np.random.default_rng(seed)
        self.policy = PolicyNetwork(init_range, rng=self.rng)
        self.trainer = TRAINERS[backend](self.policy, discount=discount, learning_rate=learning_rate)
        self.traj = Traj(max_steps)
        self.episode_finished = False
        self.episodes = 0

    def forward(self, state):
        output, _, _ = self.policy.forward(state)
        return output

    def sample_action(self, state):
        if self.episode_finished:
            raise RuntimeError("Episode finished. Call maybe_train() before sampling again.")
        output = self.forward(state)
        action, probability = sample_action(output, self.rng)
        self.traj.remember(state, action, probability)
        return action

    def record_reward(self, reward, done=False):
        self.traj.remember_reward(reward)
        if done:
            self.finish_episode()

    def finish_episode(self):
        self.episode_finished = True

    def maybe_train(self):
        if not self.episode_finished:
            return None
        try:
            info = self.trainer.update(self.traj)
            info["skipped"] = False
        except ReinforceError as e:
            print(f"Warning: {e}, skipping update.")
            info = {"skipped": True, "reason": str(e)}
        self.episode_finished = False
        self.episodes += 1
        return info

    def export_parameters(self, indent=None):
        return self.policy.export_json(indent=indent)
