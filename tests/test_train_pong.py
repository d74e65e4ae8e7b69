from __future__ import annotations

import math

import pytest

import train_pong


@pytest.fixture
def short_games(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(train_pong, "env_args", dict(score_threshold=1, trainer_hit_rate=0.5))


def test_train_writes_history_plots(tmp_path, short_games, capsys):
    agent, history = train_pong.train(n_episode=3, seed=0, result_dir=str(tmp_path))

    assert agent.episodes == 3
    assert len(history["wins"]) == 3
    assert len(history["num_steps"]) == 3
    for key in ("wins", "num_steps", "update_norm", "total_episode_reward", "mean_return"):
        assert (tmp_path / f"{key}.png").exists()
    out = capsys.readouterr().out
    assert "Training completed" in out
    assert '"output_layer_weights"' in out


def test_main_parses_arguments(tmp_path, short_games):
    train_pong.main(["--episodes", "1", "--seed", "1", "--backend", "torch", "--result-dir", str(tmp_path)])
    assert (tmp_path / "wins.png").exists()


def test_skipped_pass_keeps_history_one_entry_per_episode(tmp_path, short_games, monkeypatch):
    class SkipSecondPass(train_pong.Agent):
        def maybe_train(self):
            if self.episodes == 1:
                self.traj.clear()
                self.episode_finished = False
                self.episodes += 1
                return {"skipped": True, "reason": "forced"}
            return super().maybe_train()

    monkeypatch.setattr(train_pong, "Agent", SkipSecondPass)
    _, history = train_pong.train(n_episode=3, seed=0, result_dir=str(tmp_path))

    for key in ("wins",) + train_pong.TRAIN_KEYS:
        assert len(history[key]) == 3
    assert math.isnan(history["update_norm"][1])
    assert not math.isnan(history["update_norm"][2])
