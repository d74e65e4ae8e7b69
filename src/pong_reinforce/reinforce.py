import numpy as np

from pong_reinforce.errors import ConfigurationError, NumericInstability
from pong_reinforce.model import N_BIASES, N_HIDDEN, N_INPUTS, OUT, Action


def check_hyperparameters(discount, learning_rate):
    if not 0.0 < discount <= 1.0:
        raise ConfigurationError(f"discount must be in (0, 1], got {discount}")
    if not learning_rate > 0.0:
        raise ConfigurationError(f"learning_rate must be positive, got {learning_rate}")


class PolicyGradient:
    """Per-episode sum of parameter deltas, shaped like PolicyNetwork."""

    def __init__(self):
        self.biases = np.zeros(N_BIASES)
        self.first_layer_w = np.zeros((N_INPUTS, N_HIDDEN))
        self.second_layer_w = np.zeros((N_HIDDEN, N_HIDDEN))
        self.output_w = np.zeros(N_HIDDEN)
        self.params = [
            self.biases,
            self.first_layer_w,
            self.second_layer_w,
            self.output_w,
        ]

    def zero(self):
        for g in self.params:
            g.fill(0.0)

    def is_zero(self):
        return not any(np.any(g) for g in self.params)

    def is_finite(self):
        return all(np.all(np.isfinite(g)) for g in self.params)

    def accumulate(self, policy, state, hidden1, hidden2, delta):
        """Adds one timestep's contribution.

        ``delta`` is the scalar at the output node before its sigmoid, i.e.
        ``adjustment * (1 - pi)`` with the action's sign folded into
        ``adjustment``. It is pushed back through both hidden layers with the
        sigmoid derivative s * (1 - s).
        """
        self.biases[OUT] += delta
        self.output_w += delta * hidden2

        delta2 = delta * policy.output_w * hidden2 * (1.0 - hidden2)
        self.biases[N_HIDDEN:OUT] += delta2
        self.second_layer_w += np.outer(hidden1, delta2)

        delta1 = (policy.second_layer_w @ delta2) * hidden1 * (1.0 - hidden1)
        self.biases[:N_HIDDEN] += delta1
        self.first_layer_w += np.outer(state, delta1)

    def apply_to(self, policy):
        updated = [p + g for p, g in zip(policy.parameters(), self.params)]
        if not all(np.all(np.isfinite(u)) for u in updated):
            raise NumericInstability("Updated parameters are not finite")
        policy.load_state_dict(updated)

    def norm(self):
        return float(np.sqrt(sum(np.sum(g ** 2) for g in self.params)))


class Reinforce:
    """REINFORCE trainer: one gradient-ascent step per finished episode.

    For every timestep t the policy is re-run on the stored state and the
    taken action's log-probability gradient is scaled by
    ``sign * learning_rate * discount**t * G_t``. The per-step deltas are
    summed and added to the policy once, unnormalized.
    """

    def __init__(self, policy, discount=0.99, learning_rate=0.15):
        check_hyperparameters(discount, learning_rate)
        self.policy = policy
        self.discount = discount
        self.learning_rate = learning_rate
        self.gradient = PolicyGradient()

    def update(self, traj):
        traj.freeze()
        try:
            num_steps = traj.check_aligned()
            states = traj.get_states()
            actions = traj.get_actions()
            rewards = traj.get_rewards()
            returns = traj.compute_returns(self.discount)

            self.gradient.zero()
            for t in range(num_steps):
                output, hidden1, hidden2 = self.policy.forward(states[t])
                action = Action(actions[t])
                pi = output if action is Action.UP else 1.0 - output
                adjustment = action.sign * self.learning_rate * self.discount ** t * returns[t]
                delta = adjustment * (1.0 - pi)
                if not np.isfinite(delta):
                    raise NumericInstability(f"Non-finite update scale at step {t}")
                self.gradient.accumulate(self.policy, states[t], hidden1, hidden2, delta)

            if not self.gradient.is_finite():
                raise NumericInstability("Accumulated gradient is not finite")
            update_norm = self.gradient.norm()
            self.gradient.apply_to(self.policy)
        finally:
            self.gradient.zero()
            traj.clear()

        return {
            "total_episode_reward": float(np.sum(rewards)),
            "mean_return": float(np.mean(returns)),
            "update_norm": update_norm,
            "num_steps": num_steps,
        }
