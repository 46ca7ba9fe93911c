from csv_tokenizer.accumulator import OutputAccumulator


def _consume(acc: OutputAccumulator, count: int, keep: bool = True) -> None:
    for _ in range(count):
        acc.take_input()
        if keep:
            acc.append_prev()


def test_contiguous_characters_form_a_slice():
    acc = OutputAccumulator("abc")
    _consume(acc, 3)

    assert acc.is_empty_input()
    assert acc.take_output() == "abc"
    assert acc.is_empty_output()


def test_skipped_character_breaks_the_slice():
    acc = OutputAccumulator('a"b')
    _consume(acc, 1)
    _consume(acc, 1, keep=False)
    _consume(acc, 1)

    assert acc.peek_output() == "ab"


def test_appended_text_precedes_later_input():
    acc = OutputAccumulator("cd")
    acc.append("ab\n")
    _consume(acc, 2)

    assert acc.take_output() == "ab\ncd"


def test_take_output_resets_for_next_field():
    acc = OutputAccumulator("ab,cd")
    _consume(acc, 2)
    assert acc.take_output() == "ab"

    _consume(acc, 1, keep=False)
    _consume(acc, 2)

    assert acc.take_output() == "cd"


def test_clear_output_discards_text():
    acc = OutputAccumulator("  x")
    _consume(acc, 2)
    acc.clear_output()

    assert acc.is_empty_output()
    _consume(acc, 1)
    assert acc.peek_output() == "x"


def test_peek_does_not_consume():
    acc = OutputAccumulator("ab")
    acc.append("z")
    _consume(acc, 2)

    assert acc.peek_output() == "zab"
    assert acc.peek_output() == "zab"
    assert not acc.is_empty_output()


def test_empty_accumulator():
    acc = OutputAccumulator("")

    assert acc.is_empty_input()
    assert acc.is_empty_output()
    assert acc.take_output() == ""
