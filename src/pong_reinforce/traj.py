import numpy as np

from pong_reinforce.errors import DimensionMismatch


def discounted_returns(rewards, gamma):
    """G_t = r_t + gamma * G_{t+1}, accumulated from the end of the episode."""
    returns = [0.0] * len(rewards)
    running_return = 0.0
    for i in range(len(rewards) - 1, -1, -1):
        running_return = rewards[i] + gamma * running_return
        returns[i] = running_return
    return np.array(returns, dtype=np.float64)


class Traj:
    """States, (action, probability) pairs and rewards for one episode.

    A step is remembered when the action is sampled; the environment then
    attaches that step's reward. While frozen (a training pass is draining
    it) nothing can be appended.
    """

    def __init__(self, max_steps=None):
        self.max_steps = max_steps
        self.states_ = []
        self.actions_ = []
        self.rewards_ = []
        self.frozen_ = False

    def __len__(self):
        return len(self.states_)

    def remember(self, state, action, probability):
        if self.frozen_:
            raise RuntimeError("Cannot remember to a frozen trajectory")
        if self.max_steps is not None and len(self.states_) >= self.max_steps:
            raise RuntimeError("Trajectory buffer is full")
        self.states_.append(np.array(state, dtype=np.float64))
        self.actions_.append((action, float(probability)))

    def remember_reward(self, reward):
        if self.frozen_:
            raise RuntimeError("Cannot remember to a frozen trajectory")
        if len(self.rewards_) >= len(self.states_):
            raise RuntimeError("Reward attached before its step was remembered")
        self.rewards_.append(float(reward))

    def clear(self):
        self.states_.clear()
        self.actions_.clear()
        self.rewards_.clear()
        self.frozen_ = False

    def freeze(self):
        self.frozen_ = True

    def check_aligned(self):
        n_states, n_actions, n_rewards = len(self.states_), len(self.actions_), len(self.rewards_)
        if not (n_states == n_actions == n_rewards) or n_states == 0:
            raise DimensionMismatch(n_states, n_actions, n_rewards)
        return n_states

    def get_states(self):
        if not self.states_:
            return np.zeros((0, 5))
        return np.stack(self.states_)

    def get_actions(self):
        return [a for a, _ in self.actions_]

    def get_probabilities(self):
        return np.array([p for _, p in self.actions_], dtype=np.float64)

    def get_rewards(self):
        return np.array(self.rewards_, dtype=np.float64)

    def compute_returns(self, gamma):
        if not self.rewards_:
            raise RuntimeError("Trajectory is empty. Cannot compute returns.")
        return discounted_returns(self.rewards_, gamma)
