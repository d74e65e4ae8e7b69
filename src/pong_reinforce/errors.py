class ReinforceError(RuntimeError):
    """A training pass was rejected. The trajectory is discarded and the policy is left as it was."""


class DimensionMismatch(ReinforceError):
    def __init__(self, n_states, n_actions, n_rewards):
        super().__init__(
            f"Trajectory is not aligned: {n_states} states, {n_actions} actions, {n_rewards} rewards"
        )
        self.n_states = n_states
        self.n_actions = n_actions
        self.n_rewards = n_rewards


class NumericInstability(ReinforceError):
    pass


class ConfigurationError(ValueError):
    pass
