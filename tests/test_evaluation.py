import os
import sys

# Add evaluation/ to path
EVALUATION_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'evaluation'))
if EVALUATION_DIR not in sys.path:
	sys.path.insert(0, EVALUATION_DIR)

import evaluation

VERBOSE_OUTPUT = """
============================= test session starts ==============================
collected 4 items

tests/test_huffman_core.py::test_sample_code_table PASSED                [ 25%]
tests/test_huffman_core.py::test_render_tree FAILED                      [ 50%]
tests/test_huffman_service.py::test_empty_input SKIPPED (no reason)      [ 75%]
tests/test_huffman_cli.py::test_inspect_report ERROR                     [100%]

=========================== short test summary info ============================
FAILED tests/test_huffman_core.py::test_render_tree - AssertionError
"""


def test_parse_pytest_verbose_output():
	tests = evaluation.parse_pytest_verbose_output(VERBOSE_OUTPUT)
	assert [(t["name"], t["outcome"]) for t in tests] == [
		("test_sample_code_table", "passed"),
		("test_render_tree", "failed"),
		("test_empty_input", "skipped"),
		("test_inspect_report", "error"),
	]
	assert tests[0]["nodeid"] == "tests/test_huffman_core.py::test_sample_code_table"


def test_summarize_counts_outcomes():
	tests = evaluation.parse_pytest_verbose_output(VERBOSE_OUTPUT)
	assert evaluation.summarize(tests) == {
		"passed": 1, "failed": 1, "errors": 1, "skipped": 1, "total": 4,
	}


def test_parse_ignores_unrelated_lines():
	assert evaluation.parse_pytest_verbose_output("nothing to see\n::\n") == []


def test_environment_info_keys():
	info = evaluation.get_environment_info()
	assert {"python_version", "platform", "git_commit", "git_branch"} <= set(info)
	assert len(evaluation.generate_run_id()) == 8
