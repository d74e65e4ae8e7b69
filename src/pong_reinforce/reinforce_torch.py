import numpy as np
import torch
import torch.optim as optim

from pong_reinforce.errors import NumericInstability
from pong_reinforce.model import Action, PolicyTorch
from pong_reinforce.reinforce import check_hyperparameters


class ReinforceTorch:
    """Same update as Reinforce, with the gradient taken by torch autograd.

    The loss is ``-sum_t adjustment_t * log(pi_t)``; a plain SGD step of
    size 1 on it adds the summed deltas to the parameters. Weights are
    mirrored from the numpy policy before the pass and written back after.
    """

    def __init__(self, policy, discount=0.99, learning_rate=0.15):
        check_hyperparameters(discount, learning_rate)
        self.policy = policy
        self.discount = discount
        self.learning_rate = learning_rate
        self.policy_torch = PolicyTorch()
        self.optimizer = optim.SGD(self.policy_torch.parameters(), lr=1.0)

    def update(self, traj):
        traj.freeze()
        try:
            num_steps = traj.check_aligned()
            states = torch.from_numpy(traj.get_states())
            up = torch.tensor([Action(a) is Action.UP for a in traj.get_actions()])
            rewards = traj.get_rewards()
            returns = traj.compute_returns(self.discount)

            self.policy_torch.load_policy(self.policy)
            output = self.policy_torch(states)
            pi = torch.where(up, output, 1.0 - output)
            discounts = self.discount ** np.arange(num_steps, dtype=np.float64)
            weights = torch.from_numpy(self.learning_rate * discounts * returns)
            loss = -(weights * torch.log(pi)).sum()

            self.optimizer.zero_grad()
            loss.backward()
            grads = [p.grad for p in self.policy_torch.parameters()]
            if not all(torch.isfinite(g).all() for g in grads):
                raise NumericInstability("Accumulated gradient is not finite")
            update_norm = float(torch.sqrt(sum((g ** 2).sum() for g in grads)))
            self.optimizer.step()

            updated = self.policy_torch.policy_state()
            if not all(np.all(np.isfinite(u)) for u in updated):
                raise NumericInstability("Updated parameters are not finite")
            self.policy.load_state_dict(updated)
        finally:
            self.optimizer.zero_grad()
            traj.clear()

        return {
            "total_episode_reward": float(np.sum(rewards)),
            "mean_return": float(np.mean(returns)),
            "update_norm": update_norm,
            "num_steps": num_steps,
        }
