import argparse
import os
import time

from matplotlib import pyplot as plt

from pong_reinforce.agent import Agent
from pong_reinforce.env import PongEnv

agent_args = dict(discount=0.99, learning_rate=0.15, init_range=0.05)
env_args = dict(score_threshold=11, trainer_hit_rate=0.5)
TRAIN_KEYS = ("total_episode_reward", "mean_return", "update_norm", "num_steps")


def plot_history(history, result_dir):
    # one ./<result_dir>/<key>.png per tracked value, x = episode
    os.makedirs(result_dir, exist_ok=True)
    for key in history.keys():
        plt.plot(history[key])
        plt.title(key)
        plt.xlabel("episode")
        plt.savefig(os.path.join(result_dir, f"{key}.png"))
        plt.clf()


def play_episode(agent, env):
    state = env.reset()
    done = False
    info = {}
    while not done:
        action = agent.sample_action(state)
        state, reward, done, info = env.step(action)
        agent.record_reward(reward, done=done)
    return info


def train(n_episode=200, seed=None, backend="numpy", result_dir="./result", plot_every=50):
    history = {"wins": []}
    total_rollout_time = 0
    total_update_time = 0

    print("Pong REINFORCE training starting...")
    agent = Agent(seed=seed, backend=backend, **agent_args)
    env = PongEnv(seed=seed, **env_args)
    wins = 0
    start_time = time.time()
    for e in range(n_episode):
        rollout_start = time.time()
        game = play_episode(agent, env)
        total_rollout_time += time.time() - rollout_start

        won = game["npc_score"] > game["pc_score"]
        wins += int(won)
        print(f"Episode {e}: {'Network Won, Reward +1.0' if won else 'Network Lost, Reward -1.0'}"
              f" ({game['npc_score']}-{game['pc_score']}, {game['steps']} steps)")

        update_start = time.time()
        train_info = agent.maybe_train()
        total_update_time += time.time() - update_start

        # skipped passes leave a gap so every list stays one entry per episode
        for key in TRAIN_KEYS:
            if not (key in history):
                history[key] = []
            history[key].append(train_info.get(key, float("nan")))
        history["wins"].append(wins / (e + 1))

        if (e % plot_every == 0) or (e == n_episode - 1):
            plot_history(history, result_dir)

    duration = time.time() - start_time
    print(f"Training completed in {duration} seconds.")
    print(f"Win rate: {wins / n_episode:.3f}")
    print(f"Final SPE: {duration / n_episode}")
    print(f"Final MRT: {total_rollout_time / n_episode}")
    print(f"Final MUT: {total_update_time / n_episode}")
    print(agent.export_parameters())
    return agent, history


def main(argv=None):
    parser = argparse.ArgumentParser(description="Train a pong paddle with REINFORCE")
    parser.add_argument("--episodes", type=int, default=200)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--backend", choices=["numpy", "torch"], default="numpy")
    parser.add_argument("--result-dir", default="./result")
    args = parser.parse_args(argv)
    train(args.episodes, seed=args.seed, backend=args.backend, result_dir=args.result_dir)


if __name__ == "__main__":
    main()
