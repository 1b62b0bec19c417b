# --- txpdf_lib/reconstructor.py ---
"""
txpdf_lib/reconstructor.py: Contains the DocumentReconstructor.

Walks the classified lines of a page once, assembles header, list and
paragraph Blocks and renders them to markdown-like text.
"""
import logging
import re

from .analyzer import LineClassifier, split_lines
from .config import PipelineConfig
from .models import BLOCK_LIST, BLOCK_PARAGRAPH, Block

log_reconstruct = logging.getLogger("txpdf.reconstruct")

_EXCESS_NEWLINES = re.compile(r"\n{3,}")


class DocumentReconstructor:
    """
    Rebuilds headers, lists and paragraphs from the raw lines of a page.

    Args:
        config (PipelineConfig | None): Classification settings.
    """

    def __init__(self, config=None):
        self.config = config or PipelineConfig()

    def reconstruct(self, text):
        """Reconstructs raw page text and returns the rendered result."""
        lines = [line.text for line in split_lines(text)]
        if not lines:
            return ""
        return self.render_blocks(self.build_blocks(lines))

    def build_blocks(self, lines):
        """Walks lines once and returns the assembled Blocks in line order."""
        classifier = LineClassifier(lines, self.config)
        blocks = []
        current = Block(BLOCK_PARAGRAPH)

        def flush(block):
            if not block.is_empty:
                log_reconstruct.debug(
                    "Finalizing %s block (%d lines)", block.kind, len(block.lines)
                )
                blocks.append(block)

        for index, line in enumerate(lines):
            if classifier.is_header_line(line, index):
                flush(current)
                blocks.append(Block.header(line))
                current = Block(BLOCK_PARAGRAPH)
            elif classifier.is_list_item(line):
                if current.kind != BLOCK_LIST:
                    flush(current)
                    current = Block(BLOCK_LIST)
                current.add_line(line)
            elif current.kind == BLOCK_LIST:
                flush(current)
                current = Block(BLOCK_PARAGRAPH, [line])
            elif current.is_empty or classifier.should_merge_with_previous(
                current.lines[-1], line
            ):
                current.add_line(line)
            else:
                flush(current)
                current = Block(BLOCK_PARAGRAPH, [line])

        flush(current)
        return blocks

    @staticmethod
    def render_blocks(blocks):
        """Renders Blocks, separated by a blank line, with excess newlines collapsed."""
        text = "\n\n".join(block.render() for block in blocks if not block.is_empty)
        return _EXCESS_NEWLINES.sub("\n\n", text).strip()
