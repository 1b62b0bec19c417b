from txpdf_lib.api import reconstruct_text
from txpdf_lib.models import BLOCK_HEADER, BLOCK_LIST, BLOCK_PARAGRAPH, Block, header_level_for
from txpdf_lib.reconstructor import DocumentReconstructor

RAW_CHAPTER = "CHAPTER ONE\nThis is a sentence that\ncontinues here.\n1. First item\n2. Second item\n"


def test_chapter_page_builds_header_paragraph_and_list():
    lines = [line for line in RAW_CHAPTER.split("\n") if line]
    blocks = DocumentReconstructor().build_blocks(lines)

    assert [b.kind for b in blocks] == [BLOCK_HEADER, BLOCK_PARAGRAPH, BLOCK_LIST]
    assert blocks[0].lines == ["CHAPTER ONE"]
    assert blocks[1].render() == "This is a sentence that continues here."
    assert blocks[2].lines == ["1. First item", "2. Second item"]


def test_chapter_page_renders_end_to_end():
    assert reconstruct_text(RAW_CHAPTER) == (
        "# CHAPTER ONE #\n\n"
        "This is a sentence that continues here.\n\n"
        "1. First item\n2. Second item"
    )


def test_empty_input_renders_nothing():
    assert DocumentReconstructor().reconstruct("") == ""
    assert DocumentReconstructor().reconstruct("\n  \n") == ""


def test_paragraph_after_list_starts_a_new_block():
    lines = [
        "- alpha entry",
        "- beta entry",
        "then the prose resumes in lower case and keeps on going for a while.",
    ]
    blocks = DocumentReconstructor().build_blocks(lines)
    assert [b.kind for b in blocks] == [BLOCK_LIST, BLOCK_PARAGRAPH]
    assert blocks[1].lines == [lines[2]]


def test_rendered_paragraphs_are_not_merged_again():
    text = (
        "The first paragraph of the page talks about one subject at length.\n"
        "The second paragraph starts here and carries on with another idea.\n"
        "The third and final paragraph wraps the discussion up for the page.\n"
    )
    reconstructor = DocumentReconstructor()
    once = reconstructor.reconstruct(text)
    twice = reconstructor.reconstruct(once)
    assert once == twice
    assert once.count("\n\n") == 2


def test_header_levels_follow_title_length():
    assert header_level_for("Short") == 1
    assert header_level_for("x" * 45) == 2
    assert header_level_for("x" * 90) == 3
    assert Block.header("x" * 45).render() == f"\n## {'X' * 45} ##\n"


def test_render_blocks_collapses_blank_runs():
    blocks = [Block.header("Intro"), Block(BLOCK_PARAGRAPH, ["Body."]), Block(BLOCK_LIST)]
    assert DocumentReconstructor.render_blocks(blocks) == "# INTRO #\n\nBody."


def test_title_case_numbered_list_stays_one_list():
    lines = [
        "Follow these steps to get the tool running on a fresh machine.",
        "1. Install Python",
        "2. Run Setup",
        "3. Open Browser",
    ]
    blocks = DocumentReconstructor().build_blocks(lines)
    assert [b.kind for b in blocks] == [BLOCK_PARAGRAPH, BLOCK_LIST]
    assert blocks[1].lines == lines[1:]


def test_upper_case_bullet_list_stays_one_list():
    lines = ["Pack the following items before you leave today.", "- TENT POLES", "- SLEEPING BAG"]
    blocks = DocumentReconstructor().build_blocks(lines)
    assert [b.kind for b in blocks] == [BLOCK_PARAGRAPH, BLOCK_LIST]


def test_numbered_section_keyword_is_still_a_header():
    lines = [
        "1. Introduction",
        "This report describes how the survey was run and what it found overall.",
    ]
    blocks = DocumentReconstructor().build_blocks(lines)
    assert blocks[0].kind == BLOCK_HEADER
    assert blocks[0].lines == ["1. Introduction"]
