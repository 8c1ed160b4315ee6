"""Tests for behavioral pattern metrics."""

from conftest import make_correlation

from promptometry.core.models import IterationPattern, Reversal, Severity
from promptometry.core.pattern_analyzer import CodePatternAnalyzer, is_technical_prompt, is_vague_prompt
from promptometry.core.settings import Calibration


def _pattern(file_path: str, edit_count: int, reversals: int = 0) -> IterationPattern:
    return IterationPattern(
        conversation_id="conv-1",
        file_path=file_path,
        edit_count=edit_count,
        unique_prompts=1,
        reversals=[Reversal(index=i + 1) for i in range(reversals)],
    )


class TestPromptClassifiers:
    def test_is_vague_prompt__short_or_deictic(self):
        calibration = Calibration()

        assert is_vague_prompt("fix it", calibration)
        assert is_vague_prompt("Fix this so that the whole page renders properly", calibration)
        assert not is_vague_prompt("Add retry logic to the HTTP client in client.py", calibration)

    def test_is_technical_prompt__needs_length_and_code_reference(self):
        assert is_technical_prompt("Extract the validation into a helper function please")
        assert is_technical_prompt("Rename the field in settings.py to database_path")
        assert not is_technical_prompt("function")
        assert not is_technical_prompt("Make the page look nicer and friendlier overall")


class TestEditCoherence:
    def test_analyze_edit_coherence__single_file_prompt_is_coherent_and_focused(self):
        result = CodePatternAnalyzer().analyze_edit_coherence([make_correlation(edits=["a.py"])])

        assert result.single_file_edits == 1
        assert result.focused_edits == 1
        assert result.coherence_score == 100
        assert result.assessment == "good"

    def test_analyze_edit_coherence__four_files_is_incoherent_and_scattered(self):
        correlations = [
            make_correlation(edits=["a.py"]),
            make_correlation(edits=["a.py", "b.py", "c.py", "d.py"], offset=60),
        ]

        result = CodePatternAnalyzer().analyze_edit_coherence(correlations)

        assert result.incoherent_prompts == 1
        assert result.scattered_edits == 1
        assert result.coherence_score == 50
        assert result.assessment == "moderate"

    def test_analyze_edit_coherence__many_edits_on_two_files_is_scattered_but_coherent(self):
        edits = ["a.py", "b.py"] * 6
        result = CodePatternAnalyzer().analyze_edit_coherence([make_correlation(edits=edits)])

        assert result.multi_file_edits == 1
        assert result.coherent_prompts == 1
        assert result.focused_edits == 0
        assert result.scattered_edits == 1

    def test_analyze_edit_coherence__prompts_without_edits_are_ignored(self):
        result = CodePatternAnalyzer().analyze_edit_coherence([make_correlation()])

        assert result.coherence_score == 0
        assert result.assessment == "poor"


class TestIterationsAndReversals:
    def test_analyze_iterations__three_high_iteration_files_raise_red_flag(self):
        patterns = [_pattern("a.py", 4), _pattern("b.py", 5), _pattern("c.py", 4)]

        result = CodePatternAnalyzer().analyze_iterations(patterns)

        assert result.high_iteration_files == 3
        assert result.red_flag is True
        assert result.iteration_score == 50
        assert result.assessment == "excessive_iteration"

    def test_analyze_iterations__mostly_moderate_files(self):
        result = CodePatternAnalyzer().analyze_iterations([_pattern("a.py", 2), _pattern("b.py", 3)])

        assert result.moderate_iteration_files == 2
        assert result.iteration_score == 100
        assert result.avg_iterations_per_file == 2.5
        assert result.assessment == "moderate_iteration"

    def test_analyze_iterations__no_patterns_is_healthy(self):
        result = CodePatternAnalyzer().analyze_iterations([])

        assert result.iteration_score == 100
        assert result.assessment == "healthy_iteration"

    def test_analyze_reversals__two_files_with_reversals_raise_red_flag(self):
        patterns = [_pattern("a.py", 3, reversals=1), _pattern("b.py", 2, reversals=2), _pattern("c.py", 3), _pattern("d.py", 3)]

        result = CodePatternAnalyzer().analyze_reversals(patterns)

        assert result.files_with_reversals == 2
        assert result.total_reversals == 3
        assert result.reversal_rate == 50
        assert result.reversal_score == 0
        assert result.red_flag is True
        assert result.assessment == "some_uncertainty"


class TestProductivityAndFocus:
    def test_calculate_productivity_metrics__ideal_edit_volume_is_efficient(self):
        correlations = [make_correlation(edits=["a.py"] * 3), make_correlation(edits=["b.py"] * 3, offset=60)]

        result = CodePatternAnalyzer().calculate_productivity_metrics(correlations)

        assert result.avg_edits_per_prompt == 3
        assert result.productivity_score == 100
        assert result.assessment == "efficient"

    def test_calculate_productivity_metrics__sprawling_edits_are_inefficient(self):
        correlations = [make_correlation(edits=["a.py", "b.py", "c.py", "d.py", "e.py", "a.py"])]

        result = CodePatternAnalyzer().calculate_productivity_metrics(correlations)

        assert result.productivity_score == 30
        assert result.assessment == "inefficient"

    def test_calculate_productivity_metrics__no_edits_is_no_data(self):
        result = CodePatternAnalyzer().calculate_productivity_metrics([make_correlation()])

        assert result.assessment == "no_data"
        assert result.productivity_score == 0

    def test_analyze_file_focus__top_three_share_sets_assessment(self):
        focused = [make_correlation(edits=["a.py"] * 5 + ["e.py"] * 2 + ["b.py", "c.py", "d.py"])]
        spread = [make_correlation(edits=[f"f{i}.py" for i in range(5)])]
        scattered = [make_correlation(edits=[f"f{i}.py" for i in range(10)])]

        analyzer = CodePatternAnalyzer()
        focused_result = analyzer.analyze_file_focus(focused)

        assert focused_result.focus_percentage == 80
        assert focused_result.assessment == "highly_focused"
        assert focused_result.top_files[0].file == "a.py"
        assert analyzer.analyze_file_focus(spread).assessment == "moderately_focused"
        assert analyzer.analyze_file_focus(scattered).focus_score == 50
        assert analyzer.analyze_file_focus([]).assessment == "no_data"


class TestPatternDetection:
    def test_detect_anti_patterns__unanswered_short_questions(self):
        correlations = [make_correlation("Why is this?", offset=i * 60) for i in range(5)]

        anti_patterns = CodePatternAnalyzer().detect_anti_patterns(correlations, [])

        types = {p.type: p for p in anti_patterns}
        assert types["excessive_questions"].severity == Severity.MEDIUM
        assert types["vague_prompts"].severity == Severity.HIGH
        assert types["vague_prompts"].count == 5

    def test_detect_anti_patterns__reversals_and_heavy_iteration(self):
        patterns = [_pattern(f"r{i}.py", 2, reversals=1) for i in range(3)] + [
            _pattern("h1.py", 5),
            _pattern("h2.py", 6),
        ]

        anti_patterns = CodePatternAnalyzer().detect_anti_patterns([], patterns)

        assert [p.type for p in anti_patterns] == ["frequent_reversals", "excessive_iteration"]

    def test_detect_positive_patterns__architecture_testing_and_specificity(self):
        correlations = [
            make_correlation("Refactor the storage function into a repository class"),
            make_correlation("Refactor the api method to be more maintainable", offset=60),
            make_correlation("Write a unit test for the parse function", offset=120),
            make_correlation("Add integration coverage for the api endpoint", offset=180),
        ]

        positive = CodePatternAnalyzer().detect_positive_patterns(correlations)

        types = {p.type: p for p in positive}
        assert types["architectural_thinking"].count == 2
        assert types["testing_awareness"].count == 2
        assert types["technical_specificity"].percentage == 100

    def test_detect_positive_patterns__improving_specificity(self):
        texts = ["fix", "fix", "fix", "Rewrite the loader to stream rows", "Cache parsed rows per file", "Log every skipped row"]
        correlations = [make_correlation(text, offset=i * 60) for i, text in enumerate(texts)]

        positive = CodePatternAnalyzer().detect_positive_patterns(correlations)

        improving = [p for p in positive if p.type == "improving_specificity"]
        assert len(improving) == 1
        assert improving[0].improvement.endswith("%")

    def test_detect_positive_patterns__no_correlations_yields_nothing(self):
        assert CodePatternAnalyzer().detect_positive_patterns([]) == []
