import random

from conftest import SAMPLE_REQS
from progress import (
    CompletionStats,
    completion_percentage,
    evaluate,
    evaluate_group,
    option_satisfied,
    progress_report,
    requirement_satisfied,
)
from requirements import (
    GenericGroup,
    Option,
    Requirement,
    ThemeGroup,
    UnknownGroup,
    UnrestrictedGroup,
    parse_group,
    parse_major_requirements,
)


def _generic(*requirements, name="Core"):
    return parse_group({"requirementType": 0, "name": name, "requirements": list(requirements)})


class TestSatisfaction:
    def test_single_option_subset(self):
        req = Requirement(options=(Option(courses=("A", "B")),))
        assert requirement_satisfied(req, {"A", "B", "C"})

    def test_single_option_partial(self):
        req = Requirement(options=(Option(courses=("A", "B")),))
        assert not requirement_satisfied(req, {"A"})

    def test_any_option(self):
        req = Requirement(options=(Option(courses=("A",)), Option(courses=("B",))))
        assert requirement_satisfied(req, {"B"})

    def test_order_independent(self):
        assert option_satisfied(Option(courses=("B", "A")), {"A", "B"})

    def test_exact_match_only(self):
        assert not option_satisfied(Option(courses=("COMP_SCI 111-0",)), {"comp_sci 111-0"})

    def test_no_options_not_satisfied(self):
        assert not requirement_satisfied(Requirement(options=()), {"A"})


class TestEvaluateGroup:
    def test_count_only_groups(self):
        for group in (ThemeGroup(count=3), UnrestrictedGroup(count=2), UnknownGroup(count=1)):
            assert evaluate_group(group, {"A"}) == {"completed": 0, "total": 1}

    def test_skips_empty_option_lists(self):
        group = _generic({"between": []}, {"between": [{"courses": ["A"]}]})
        assert evaluate_group(group, {"A"}) == {"completed": 1, "total": 1}

    def test_mixed(self):
        group = _generic(
            {"between": [{"courses": ["A"]}]},
            {"between": [{"courses": ["B", "C"]}]},
            {"between": [{"courses": ["D"]}, {"courses": ["E"]}]},
        )
        assert evaluate_group(group, {"A", "B", "E"}) == {"completed": 2, "total": 3}

    def test_generic_with_no_requirements(self):
        assert evaluate_group(GenericGroup(name="Empty"), {"A"}) == {"completed": 0, "total": 0}


class TestEvaluate:
    def test_empty_tree(self):
        assert evaluate([], {"A"}) == CompletionStats(completed=0, total=0, percentage=0)

    def test_sample_tree(self):
        groups = parse_major_requirements(SAMPLE_REQS).groups
        stats = evaluate(groups, {"COMP_SCI 111-0", "MATH 218-1"})
        # 3 generic requirements + theme + unrestricted
        assert stats == CompletionStats(completed=2, total=5, percentage=40)

    def test_all_generic_done(self):
        groups = parse_major_requirements(SAMPLE_REQS).groups
        stats = evaluate(groups, {"COMP_SCI 111-0", "COMP_SCI 211-0", "COMP_SCI 213-0", "MATH 220-1"})
        assert stats.completed == 3
        assert stats.percentage == 60

    def test_null_generic_group_adds_nothing(self):
        groups = parse_major_requirements({
            "allreqs": [
                {"requirementType": 0, "name": "Core", "requirements": None},
                {"requirementType": 1, "numreqs": 2},
            ],
        }).groups
        assert evaluate(groups, set()) == CompletionStats(completed=0, total=1, percentage=0)

    def test_none_completed_set(self):
        assert evaluate([ThemeGroup(count=1)], None) == CompletionStats(completed=0, total=1, percentage=0)

    def test_deterministic(self):
        groups = parse_major_requirements(SAMPLE_REQS).groups
        taken = {"COMP_SCI 111-0"}
        assert evaluate(groups, taken) == evaluate(groups, set(taken))

    def test_monotonic_when_adding_courses(self):
        groups = parse_major_requirements(SAMPLE_REQS).groups
        pool = ["COMP_SCI 111-0", "COMP_SCI 211-0", "COMP_SCI 213-0", "MATH 220-1", "MATH 218-1", "X 1"]
        rng = random.Random(7)
        for _ in range(50):
            rng.shuffle(pool)
            taken: set[str] = set()
            prev = evaluate(groups, taken)
            for key in pool:
                taken.add(key)
                cur = evaluate(groups, taken)
                assert cur.completed >= prev.completed
                assert cur.percentage >= prev.percentage
                prev = cur


class TestPercentage:
    def test_zero_total(self):
        assert completion_percentage(0, 0) == 0

    def test_rounds_half_up(self):
        assert completion_percentage(1, 8) == 13
        assert completion_percentage(1, 200) == 1

    def test_whole(self):
        assert completion_percentage(3, 3) == 100


class TestProgressReport:
    def test_groups_breakdown(self):
        report = progress_report(parse_major_requirements(SAMPLE_REQS), ["MATH 220-1"])
        assert report["major"] == "computer science"
        assert report["is_engineering"] is True
        assert (report["completed"], report["total"], report["percentage"]) == (1, 5, 20)

        core, theme, unrestricted = report["groups"]
        assert core["type"] == "Generic"
        assert core["name"] == "Core"
        assert (core["completed"], core["total"]) == (1, 3)
        # the empty-between requirement is not displayed
        assert len(core["requirements"]) == 3
        math_req = core["requirements"][2]
        assert math_req["satisfied"] is True
        assert [o["satisfied"] for o in math_req["options"]] == [True, False]

        assert theme == {"type": "Theme", "count": 3, "completed": 0, "total": 1}
        assert unrestricted == {"type": "Unrestricted", "count": 5, "completed": 0, "total": 1}

    def test_unknown_group_keeps_tag(self):
        reqs = parse_major_requirements({"major": "m", "allreqs": [{"requirementType": 9, "numreqs": 2}]})
        group = progress_report(reqs, [])["groups"][0]
        assert group["type"] == "Unknown"
        assert group["requirement_type"] == 9
