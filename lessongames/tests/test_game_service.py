"""
End-to-end tests of the game operations: round trips, ordering and the
fill-in-the-blank authoring scenario.
"""

import copy

import pytest

from lessongames.errors import NotFoundError
from lessongames.schemas import FillBlankGameSpec


def _fill_blank_shape(game):
    return {
        "total_rounds": game["total_rounds"],
        "rounds": [
            {
                "prompt": r["prompt"],
                "choices": [
                    {"text": c["text"], "media_url": c["media_url"], "is_correct": c["is_correct"]}
                    for c in r["choices"]
                ],
            }
            for r in game["rounds"]
        ],
    }


def _multiple_choice_shape(game):
    return {
        "total_rounds": game["total_rounds"],
        "rounds": [
            {
                "question": r["question"],
                "choices": [
                    {"text": c["text"], "is_correct": c["is_correct"]} for c in r["choices"]
                ],
            }
            for r in game["rounds"]
        ],
    }


def _matching_shape(game):
    rounds = []
    for r in game["rounds"]:
        left_index = {c["id"]: i for i, c in enumerate(r["left"])}
        right_index = {c["id"]: i for i, c in enumerate(r["right"])}
        rounds.append(
            {
                "prompt": r["prompt"],
                "left": [{"text": c["text"], "media_url": c["media_url"]} for c in r["left"]],
                "right": [{"text": c["text"], "media_url": c["media_url"]} for c in r["right"]],
                "matches": {
                    (left_index[m["left_choice_id"]], right_index[m["right_choice_id"]])
                    for m in r["matches"]
                },
            }
        )
    return {"total_rounds": game["total_rounds"], "rounds": rounds}


def _without_ids(game):
    """Drop generated identifiers and timestamps, keep everything else"""
    if isinstance(game, dict):
        return {
            key: _without_ids(value)
            for key, value in game.items()
            if key not in ("id", "created_at", "updated_at")
            and not key.endswith("_choice_id")
        }
    if isinstance(game, list):
        return [_without_ids(item) for item in game]
    return game


class TestRoundTrip:
    """What is written is what is read back"""

    def test_fill_blank(self, service, lesson, fill_blank_spec):
        created = service.create_game(lesson["id"], "fill_blank", fill_blank_spec, author_id=5)
        read = service.get_game(created["id"])

        assert read == created
        assert read["variant"] == "fill_blank"
        assert read["lesson_id"] == lesson["id"]
        assert read["created_by"] == 5
        expected = copy.deepcopy(fill_blank_spec)
        for round_spec in expected["rounds"]:
            for choice in round_spec["choices"]:
                choice.setdefault("text", None)
                choice.setdefault("media_url", None)
                choice.setdefault("is_correct", False)
        assert _fill_blank_shape(read) == expected

    def test_multiple_choice(self, service, lesson, multiple_choice_spec):
        created = service.create_game(lesson["id"], "multiple_choice", multiple_choice_spec)
        read = service.get_game(created["id"])

        expected = copy.deepcopy(multiple_choice_spec)
        for round_spec in expected["rounds"]:
            for choice in round_spec["choices"]:
                choice.setdefault("is_correct", False)
        assert _multiple_choice_shape(read) == expected

    def test_matching(self, service, lesson, matching_spec):
        created = service.create_game(lesson["id"], "matching", matching_spec)
        read = service.get_game(created["id"])

        [round_shape] = _matching_shape(read)["rounds"]
        [round_spec] = matching_spec["rounds"]
        assert round_shape["prompt"] == round_spec["prompt"]
        assert [item["text"] for item in round_shape["left"]] == ["Bird", "Bee", "Fish"]
        assert round_shape["left"][2]["media_url"] == "uploads/fish.png"
        assert [item["text"] for item in round_shape["right"]] == ["Hive", "Pond", "Nest"]
        assert round_shape["matches"] == {
            (m["left_index"], m["right_index"]) for m in round_spec["matches"]
        }

    def test_accepts_spec_models(self, service, lesson, fill_blank_spec):
        spec = FillBlankGameSpec(**fill_blank_spec)
        game = service.create_game(lesson["id"], "fill_blank", spec)
        assert len(game["rounds"]) == 2


class TestReplaceShape:
    """Replacing twice with the same spec gives the same shape"""

    @pytest.mark.parametrize("variant", ["fill_blank", "matching", "multiple_choice"])
    def test_replace_twice(
        self, service, lesson, variant, fill_blank_spec, matching_spec, multiple_choice_spec
    ):
        spec = {
            "fill_blank": fill_blank_spec,
            "matching": matching_spec,
            "multiple_choice": multiple_choice_spec,
        }[variant]
        game = service.create_game(lesson["id"], variant, spec)

        first = service.replace_game(game["id"], spec)
        second = service.replace_game(game["id"], spec)

        assert _without_ids(first) == _without_ids(second)
        assert _without_ids(first) == _without_ids(game)


class TestOrdering:
    """Choices come back by display position"""

    def test_positions_three_one_two(self, service, lesson, multiple_choice_spec):
        multiple_choice_spec["rounds"][0]["choices"] = [
            {"text": "third", "position": 3},
            {"text": "first", "position": 1, "is_correct": True},
            {"text": "second", "position": 2},
        ]

        game = service.create_game(lesson["id"], "multiple_choice", multiple_choice_spec)
        choices = service.get_game(game["id"])["rounds"][0]["choices"]

        assert [c["position"] for c in choices] == [1, 2, 3]
        assert [c["text"] for c in choices] == ["first", "second", "third"]
        assert choices[0]["is_correct"] is True

    def test_matching_positions_per_side(self, service, lesson, matching_spec):
        round_spec = matching_spec["rounds"][0]
        for position, item in zip([2, 3, 1], round_spec["left"]):
            item["position"] = position

        game = service.create_game(lesson["id"], "matching", matching_spec)
        matching_round = game["rounds"][0]

        assert [c["text"] for c in matching_round["left"]] == ["Fish", "Bird", "Bee"]
        # Pairs still connect the items named by the submitted indices
        by_id = {c["id"]: c["text"] for c in matching_round["left"] + matching_round["right"]}
        pairs = {(by_id[m["left_choice_id"]], by_id[m["right_choice_id"]]) for m in matching_round["matches"]}
        assert pairs == {("Bird", "Nest"), ("Bee", "Hive"), ("Fish", "Pond")}


class TestFillBlankScenario:
    """Create, shrink and delete a fill-in-the-blank game"""

    def test_scenario(self, service, lesson):
        spec = {
            "total_rounds": 2,
            "rounds": [
                {
                    "prompt": "The cat _ on the mat",
                    "choices": [
                        {"text": "sat", "is_correct": True},
                        {"text": "ran", "is_correct": False},
                    ],
                },
                {
                    "prompt": "Birds _ in the sky",
                    "choices": [
                        {"text": "swim"},
                        {"text": "fly", "is_correct": True},
                    ],
                },
            ],
        }

        game = service.create_game(lesson["id"], "fill_blank", spec)
        first_round = service.get_game(game["id"])["rounds"][0]

        assert first_round["round_number"] == 1
        assert first_round["blank_position"] == "The cat _ on the mat".index("_") == 8
        assert [c["text"] for c in first_round["choices"] if c["is_correct"]] == ["sat"]

        spec["total_rounds"] = 1
        spec["rounds"] = spec["rounds"][:1]
        service.replace_game(game["id"], spec)

        stored = service.get_game(game["id"])
        assert stored["total_rounds"] == 1
        assert len(stored["rounds"]) == 1

        with pytest.raises(NotFoundError):
            service.delete_game(game["id"] + 1000)
