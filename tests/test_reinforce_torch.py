from __future__ import annotations

import numpy as np
import pytest

from pong_reinforce.errors import DimensionMismatch, NumericInstability
from pong_reinforce.model import Action, PolicyNetwork
from pong_reinforce.reinforce import Reinforce
from pong_reinforce.reinforce_torch import ReinforceTorch
from pong_reinforce.traj import Traj


def _episode(policy, seed, length=25, final_reward=-1.0):
    rng = np.random.default_rng(seed)
    traj = Traj()
    for t in range(length):
        state = rng.normal(scale=2.0, size=5)
        action, probability = policy.act(state, rng)
        traj.remember(state, action, probability)
        traj.remember_reward(final_reward if t == length - 1 else 0.0)
    return traj


@pytest.mark.parametrize("final_reward", [1.0, -1.0])
def test_analytic_update_matches_autograd(final_reward):
    numpy_policy = PolicyNetwork(init_range=0.5, rng=np.random.default_rng(1))
    torch_policy = PolicyNetwork(init_range=0.5, rng=np.random.default_rng(1))

    info = Reinforce(numpy_policy, discount=0.95, learning_rate=0.15).update(
        _episode(numpy_policy, seed=2, final_reward=final_reward)
    )
    torch_info = ReinforceTorch(torch_policy, discount=0.95, learning_rate=0.15).update(
        _episode(torch_policy, seed=2, final_reward=final_reward)
    )

    for ours, theirs in zip(numpy_policy.state_dict(), torch_policy.state_dict()):
        np.testing.assert_allclose(ours, theirs, atol=1e-10)
    assert info["num_steps"] == torch_info["num_steps"] == 25
    assert info["update_norm"] == pytest.approx(torch_info["update_norm"], rel=1e-8)


def test_torch_backend_rejects_mismatched_trajectory():
    policy = PolicyNetwork(rng=np.random.default_rng(0))
    traj = Traj()
    traj.remember(np.zeros(5), Action.UP, 0.5)
    before = [p.tobytes() for p in policy.parameters()]

    with pytest.raises(DimensionMismatch):
        ReinforceTorch(policy).update(traj)

    assert [p.tobytes() for p in policy.parameters()] == before
    assert len(traj) == 0


def test_torch_backend_rejects_non_finite_states():
    policy = PolicyNetwork(rng=np.random.default_rng(0))
    traj = Traj()
    traj.remember(np.full(5, np.nan), Action.UP, 0.5)
    traj.remember_reward(1.0)
    before = [p.tobytes() for p in policy.parameters()]

    with pytest.raises(NumericInstability):
        ReinforceTorch(policy).update(traj)

    assert [p.tobytes() for p in policy.parameters()] == before
    assert len(traj) == 0


def _grads_cleared(trainer: ReinforceTorch) -> bool:
    return all(p.grad is None or not p.grad.any() for p in trainer.policy_torch.parameters())


def test_torch_gradients_are_cleared_after_a_successful_pass():
    policy = PolicyNetwork(rng=np.random.default_rng(0))
    trainer = ReinforceTorch(policy)
    traj = Traj()
    traj.remember(np.ones(5), Action.UP, policy.forward(np.ones(5))[0])
    traj.remember_reward(1.0)

    trainer.update(traj)

    assert _grads_cleared(trainer)


def test_torch_gradients_are_cleared_after_a_failed_pass():
    policy = PolicyNetwork(rng=np.random.default_rng(0))
    trainer = ReinforceTorch(policy)
    traj = Traj()
    traj.remember(np.full(5, np.nan), Action.UP, 0.5)
    traj.remember_reward(1.0)

    with pytest.raises(NumericInstability):
        trainer.update(traj)

    assert _grads_cleared(trainer)
