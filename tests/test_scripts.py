"""Tests for the maintenance script command lines."""

import pytest

from config.settings import settings
from scripts.update_video_scores import parse_args


class TestUpdateVideoScoresArgs:
    """Arguments of the pending score update job."""

    def test_defaults(self):
        args = parse_args([])
        assert args.batch_size == settings.score_update_batch_size
        assert args.delay_seconds == settings.score_update_delay_seconds
        assert args.category is None

    def test_batch_delay_and_category(self):
        args = parse_args(["10", "5", "--category", "c-programming"])
        assert (args.batch_size, args.delay_seconds, args.category) == (10, 5.0, "c-programming")

    def test_unknown_category(self):
        with pytest.raises(SystemExit):
            parse_args(["--category", "c"])

    def test_zero_batch_size(self):
        with pytest.raises(SystemExit):
            parse_args(["0"])
