"""
Unit tests for shared CLI helpers.
"""

import argparse

import pytest

from zircon.cli.utils import confirm, get_context, print_name_list


@pytest.mark.unit
class TestConfirm:
    @pytest.mark.parametrize("answer", ["y", "Y", "yes", " YES "])
    def test_yes(self, answer):
        assert confirm("Continue?", input_func=lambda _: answer)

    @pytest.mark.parametrize("answer", ["", "n", "no", "maybe"])
    def test_no(self, answer):
        assert not confirm("Continue?", input_func=lambda _: answer)

    def test_eof_is_no(self):
        def closed(_):
            raise EOFError

        assert not confirm("Continue?", input_func=closed)

    def test_assume_yes_skips_prompt(self):
        def never(_):
            raise AssertionError("prompted")

        assert confirm("Continue?", assume_yes=True, input_func=never)

    def test_prompt_suffix(self):
        prompts = []
        confirm("Continue?", input_func=lambda p: prompts.append(p) or "n")
        assert prompts == ["Continue? (y/N): "]


@pytest.mark.unit
class TestOutput:
    def test_print_name_list_marks_current(self, capsys):
        print_name_list(["a", "b"], marker="b")
        assert capsys.readouterr().out == "  a\n  b (current)\n"


@pytest.mark.unit
class TestGetContext:
    def test_cached_on_args(self, tmp_path):
        args = argparse.Namespace(root=tmp_path, config=None)
        context = get_context(args)

        assert context.paths.root == tmp_path
        assert get_context(args) is context

    def test_root_from_environment(self, isolated_root):
        args = argparse.Namespace(root=None, config=None)
        assert get_context(args).paths.root == isolated_root

    def test_reads_root_config(self, tmp_path):
        (tmp_path / "config.yaml").write_text("lock_timeout: 3\n")
        context = get_context(argparse.Namespace(root=tmp_path, config=None))
        assert context.config.lock_timeout == 3
        assert context.lock_manager.timeout == 3
