"""Tests for the command line interface."""

import json
from unittest.mock import Mock, patch

import pytest
import yaml

from swap_swarm import cli
from swap_swarm.config import Config


def make_config(tmp_path, **overrides):
    data = {
        "wallets_file": str(tmp_path / "wallets.txt"),
        "history_file": str(tmp_path / "swap_history.json"),
        "log_file": str(tmp_path / "logs" / "swap_swarm.log"),
    }
    data.update(overrides)
    path = tmp_path / "bot_config.yaml"
    path.write_text(yaml.dump(data))
    return path


class TestCollectRunParameters:

    def test_prompts_for_missing_values(self):
        args = cli.build_parser().parse_args(["run", "--swaps-min", "2"])
        answers = iter(["4", "", "20000"])
        prompts = []

        def fake_input(prompt):
            prompts.append(prompt)
            return next(answers)

        params = cli.collect_run_parameters(args, Config(), fake_input)

        assert len(prompts) == 3
        assert (params.swaps_min, params.swaps_max) == (2, 4)
        assert (params.delay_min_ms, params.delay_max_ms) == (30000, 60000)

    def test_empty_answers_take_defaults(self):
        args = cli.build_parser().parse_args(["run"])
        params = cli.collect_run_parameters(args, Config(), lambda prompt: "")

        assert (params.swaps_min, params.swaps_max) == (5, 10)
        assert (params.delay_min_ms, params.delay_max_ms) == (30000, 60000)

    def test_flags_skip_prompts(self):
        args = cli.build_parser().parse_args([
            "run", "--swaps-min", "1", "--swaps-max", "3",
            "--delay-min", "100", "--delay-max", "200",
        ])
        fake_input = Mock()

        params = cli.collect_run_parameters(args, Config(), fake_input)

        fake_input.assert_not_called()
        assert (params.delay_min_ms, params.delay_max_ms) == (100, 200)


class TestCommands:

    def test_run_without_wallets_exits_1(self, tmp_path):
        config_path = make_config(tmp_path)
        args = cli.build_parser().parse_args(["--config", str(config_path), "run"])

        assert cli.run_command(args, input_func=Mock()) == 1

    def test_run_starts_orchestrator(self, tmp_path):
        config_path = make_config(tmp_path)
        (tmp_path / "wallets.txt").write_text("keyOne\nkeyTwo\n")
        args = cli.build_parser().parse_args([
            "--config", str(config_path), "run",
            "--swaps-min", "1", "--swaps-max", "1", "--delay-min", "0", "--delay-max", "0",
        ])

        with patch.object(cli, "SwarmOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.run.return_value = Mock(exit_code=0)
            assert cli.run_command(args) == 0

        credentials, params = orchestrator_cls.return_value.run.call_args[0]
        assert credentials == ["keyOne", "keyTwo"]
        assert (params.swaps_min, params.swaps_max) == (1, 1)

    def test_wallets_flag_overrides_config(self, tmp_path):
        config_path = make_config(tmp_path)
        other = tmp_path / "other.txt"
        other.write_text("keyThree\n")
        args = cli.build_parser().parse_args([
            "--config", str(config_path), "run", "--wallets", str(other),
        ])

        assert cli.load_config(args).wallets_file == str(other)

    def test_init_config(self, tmp_path):
        path = tmp_path / "bot_config.yaml"

        with pytest.raises(SystemExit) as exc:
            cli.main(["--config", str(path), "init-config"])

        assert exc.value.code == 0
        assert "jupiter_api_url" in path.read_text()

    def test_history_command(self, tmp_path):
        config_path = make_config(tmp_path)
        (tmp_path / "swap_history.json").write_text(json.dumps([
            {"input_mint": "a", "output_mint": "b", "amount": 1, "txid": "s1",
             "wallet": "walletA", "timestamp": "2026-01-01T00:00:00+00:00"},
        ]))
        args = cli.build_parser().parse_args(["--config", str(config_path), "history"])

        with patch.object(cli, "console") as console:
            assert cli.history_command(args) == 0

        assert console.print.called

    def test_invalid_config_exits_1(self, tmp_path):
        path = tmp_path / "bot_config.yaml"
        path.write_text("tokens: []\n")

        with pytest.raises(SystemExit) as exc:
            cli.main(["--config", str(path), "history"])

        assert exc.value.code == 1
