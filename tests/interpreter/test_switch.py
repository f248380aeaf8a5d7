import pytest

from fli.exceptions import ErrorCode

CLASSIFY = """
main(n int) string {
    switch n {
        < 0 => "negative",
        0 => "zero",
        > 100 => {
            return "large"
        },
        default => "positive"
    }
}
"""


# --- 1. Case Selection ---


@pytest.mark.parametrize("n, expected", [(-5, "negative"), (0, "zero"), (500, "large"), (7, "positive")])
def test_relation_bare_and_default_cases(run_program, n, expected):
    result, _ = run_program(CLASSIFY, arguments=[n])
    assert result == expected


def test_first_matching_case_wins(run_program):
    result, _ = run_program('main() string { switch 5 { > 0 => "first", > 1 => "second" } }')
    assert result == "first"


def test_no_matching_case_and_no_default_does_nothing(run_program):
    result, _ = run_program("main() int { switch 5 { 1 => 10 } return 0 }")
    assert result == 0


def test_default_position_does_not_matter(run_program):
    result, _ = run_program('main() string { switch 3 { default => "other", 3 => "three" } }')
    assert result == "three"


def test_cases_without_subject_are_conditions(run_program):
    script = """
    main(n int) string {
        switch {
            n < 0 => "neg",
            n == 0 => "zero",
            default => "pos"
        }
    }
    """
    assert run_program(script, arguments=[-1])[0] == "neg"
    assert run_program(script, arguments=[0])[0] == "zero"
    assert run_program(script, arguments=[4])[0] == "pos"


# --- 2. Guard Variables ---


def test_single_guard_variable_is_the_subject(run_program):
    script = 'main(n int) string { switch int half := n / 2 { > 10 => "big", default => "small" } }'
    assert run_program(script, arguments=[30])[0] == "big"
    assert run_program(script, arguments=[8])[0] == "small"


def test_guard_variable_is_visible_in_case_outputs(run_program):
    result, _ = run_program("main() int { switch int a := 3 { 3 => a * 2, default => 0 } }")
    assert result == 6


def test_multiple_guard_variables_leave_no_subject(run_program):
    script = 'main() string { switch int a := 1, int b := 2 { a < b => "less", default => "other" } }'
    result, _ = run_program(script)
    assert result == "less"


def test_guard_variable_is_invisible_after_the_switch(run_with_error):
    script = "main() { switch int a := 1 { 1 => println(a) } println(a) }"
    run_with_error(script, ErrorCode.UNDEFINED_VARIABLE)


# --- 3. Case Outputs ---


def test_block_output_does_not_return(run_program):
    script = "main() int { int r := 0 switch 2 { 2 => { r = 20 } } return r + 1 }"
    result, _ = run_program(script)
    assert result == 21


def test_block_output_has_its_own_scope(run_with_error):
    script = "main() { switch 1 { 1 => { int x := 5 } } println(x) }"
    run_with_error(script, ErrorCode.UNDEFINED_VARIABLE)


def test_void_call_output_does_not_return(run_program):
    result, output = run_program('main() { switch 1 { 1 => println("one") } println("after") }')
    assert result is None
    assert output == "one\nafter\n"


def test_expression_output_must_match_the_return_type(run_with_error):
    run_with_error('main() int { switch 1 { 1 => "one" } }', ErrorCode.INVALID_RETURN_TYPE)


def test_switch_returning_from_a_loop(run_program):
    script = """
    main() int {
        int i := 0
        while true {
            i = i + 1
            switch i {
                3 => i * 10
            }
        }
    }
    """
    result, _ = run_program(script)
    assert result == 30


# --- 4. Errors ---


@pytest.mark.parametrize(
    "script, expected_code",
    [
        ("main() int { switch { > 0 => 1 } }", ErrorCode.UNKNOWN_CASE_SHAPE),
        ("main() int { switch { 1 => 2 } }", ErrorCode.NON_BOOLEAN_CONDITION),
        ("main() int { switch 1 { default => 1, default => 2 } }", ErrorCode.MULTIPLE_DEFAULT_CASES),
        ('main() int { switch 1 { "1" => 2 } }', ErrorCode.OPERATOR_TYPE_MISMATCH),
        ('main() int { switch "a" { < "b" => 2 } }', ErrorCode.OPERATOR_TYPE_MISMATCH),
    ],
)
def test_switch_errors(run_with_error, script, expected_code):
    run_with_error(script, expected_code)


def test_second_default_case_is_reported(run_with_error):
    error = run_with_error(
        "main() {\n switch 1 {\n default => 1,\n default => 2\n }\n}", ErrorCode.MULTIPLE_DEFAULT_CASES
    )
    assert error.position.line == 4
