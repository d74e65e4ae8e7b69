import enum
import json

import numpy as np
import torch
import torch.nn as nn

from pong_reinforce.errors import ConfigurationError

N_INPUTS = 5
N_HIDDEN = 5
N_BIASES = 2 * N_HIDDEN + 1
# index of the output node's bias
OUT = 2 * N_HIDDEN


def sigmoid(x):
    # 1 / (1 + e^-x) without overflow for large |x|
    return np.exp(-np.logaddexp(0.0, -x))


class Action(enum.IntEnum):
    DOWN = 0
    UP = 1

    @property
    def sign(self):
        return 1.0 if self is Action.UP else -1.0


def sample_action(output, rng):
    """Bernoulli draw on the network output.

    Returns the action and the probability the policy gave to *that* action,
    which is ``output`` for UP and ``1 - output`` for DOWN.
    """
    r = rng.random()
    if r < output:
        return Action.UP, output
    return Action.DOWN, 1.0 - output


class PolicyNetwork:
    """5 -> 5 -> 5 -> 1 sigmoid network giving P(UP) for a game state.

    State order is ``[ball_x, ball_y, ball_vx, ball_vy, npc_paddle_y]``.
    ``biases`` holds the first hidden layer (0..4), the second hidden layer
    (5..9) and the output node (10).
    """

    def __init__(self, init_range=0.05, rng=None):
        if not init_range > 0:
            raise ConfigurationError(f"init_range must be positive, got {init_range}")
        if rng is None:
            rng = np.random.default_rng()
        self.init_range = init_range

        def uniform(shape):
            return rng.uniform(-init_range, init_range, size=shape)

        self.first_layer_w = uniform((N_INPUTS, N_HIDDEN))
        self.second_layer_w = uniform((N_HIDDEN, N_HIDDEN))
        self.output_w = uniform(N_HIDDEN)
        self.biases = uniform(N_BIASES)

        self.params = [
            self.biases,
            self.first_layer_w,
            self.second_layer_w,
            self.output_w,
        ]

    def parameters(self):
        return self.params

    def state_dict(self):
        return [p.copy() for p in self.params]

    def load_state_dict(self, state):
        for p, s in zip(self.params, state):
            np.copyto(p, s)

    def forward(self, state):
        """Returns ``(output, hidden1, hidden2)``.

        Also accepts a batch of states shaped ``[T, 5]``, in which case the
        output is an array of shape ``[T]``.
        """
        state = np.asarray(state, dtype=np.float64)
        hidden1 = sigmoid(state @ self.first_layer_w + self.biases[:N_HIDDEN])
        hidden2 = sigmoid(hidden1 @ self.second_layer_w + self.biases[N_HIDDEN:OUT])
        output = sigmoid(hidden2 @ self.output_w + self.biases[OUT])
        if np.ndim(output) == 0:
            output = float(output)
        return output, hidden1, hidden2

    def act(self, state, rng):
        output, _, _ = self.forward(state)
        return sample_action(output, rng)

    def to_dict(self):
        return {
            "biases": self.biases.tolist(),
            "first_layer_weights": self.first_layer_w.tolist(),
            "second_layer_weights": self.second_layer_w.tolist(),
            "output_layer_weights": self.output_w.tolist(),
        }

    def export_json(self, indent=None):
        return json.dumps(self.to_dict(), indent=indent)


class PolicyTorch(nn.Module):
    """Same network as PolicyNetwork, as a torch module for autograd."""

    def __init__(self):
        super(PolicyTorch, self).__init__()
        self.first_layer = nn.Linear(N_INPUTS, N_HIDDEN)
        self.second_layer = nn.Linear(N_HIDDEN, N_HIDDEN)
        self.output_layer = nn.Linear(N_HIDDEN, 1)
        self.double()

    def forward(self, x):
        hidden1 = torch.sigmoid(self.first_layer(x))
        hidden2 = torch.sigmoid(self.second_layer(hidden1))
        return torch.sigmoid(self.output_layer(hidden2)).squeeze(-1)

    def probabilities(self, obs):
        if not isinstance(obs, torch.Tensor):
            obs = torch.as_tensor(np.asarray(obs, dtype=np.float64))
        with torch.no_grad():
            output = self.forward(obs)
        return output.numpy()

    def load_policy(self, policy):
        # nn.Linear stores weights as [out, in]
        with torch.no_grad():
            self.first_layer.weight.copy_(torch.from_numpy(policy.first_layer_w.T))
            self.first_layer.bias.copy_(torch.from_numpy(policy.biases[:N_HIDDEN]))
            self.second_layer.weight.copy_(torch.from_numpy(policy.second_layer_w.T))
            self.second_layer.bias.copy_(torch.from_numpy(policy.biases[N_HIDDEN:OUT]))
            self.output_layer.weight.copy_(torch.from_numpy(policy.output_w.reshape(1, -1)))
            self.output_layer.bias.copy_(torch.from_numpy(policy.biases[OUT:]))

    def policy_state(self):
        """Parameters in PolicyNetwork.state_dict() order."""
        with torch.no_grad():
            biases = torch.cat([
                self.first_layer.bias,
                self.second_layer.bias,
                self.output_layer.bias,
            ])
            return [
                biases.numpy().copy(),
                self.first_layer.weight.T.numpy().copy(),
                self.second_layer.weight.T.numpy().copy(),
                self.output_layer.weight.reshape(-1).numpy().copy(),
            ]
