"""
Builds the ordered content blocks of a bookmark page.

Block order is fixed by ``STAGES``: link, media, summary, notes. Each stage
contributes zero or more blocks; ``build`` walks the stages in that order.
"""
from typing import Any, Callable, Dict, List

from instant_bookmark.app.schemas.bookmark import BookmarkPage, SourceKind

Block = Dict[str, Any]

# Notion rejects rich text objects longer than this.
MAX_TEXT_LENGTH = 2000

SUMMARY_HEADING = "Summary"
NOTES_HEADING = "Thoughts"
MISSING_IMAGE_TEXT = "[Screenshot image not available (no upload handle)]"

SOURCE_TAGS = {
    SourceKind.URL: "Website",
    SourceKind.SCREENSHOT: "Screenshot",
}


def rich_text(content: str) -> List[Dict[str, Any]]:
    chunks = [content[i : i + MAX_TEXT_LENGTH] for i in range(0, len(content), MAX_TEXT_LENGTH)] or [""]
    return [{"type": "text", "text": {"content": chunk}} for chunk in chunks]


def heading_block(text: str) -> Block:
    return {"object": "block", "type": "heading_2", "heading_2": {"rich_text": rich_text(text)}}


def paragraph_block(text: str) -> Block:
    return {"object": "block", "type": "paragraph", "paragraph": {"rich_text": rich_text(text)}}


def bookmark_block(url: str) -> Block:
    return {"object": "block", "type": "bookmark", "bookmark": {"url": url}}


def image_block(upload_id: str) -> Block:
    return {
        "object": "block",
        "type": "image",
        "image": {"type": "file_upload", "file_upload": {"id": upload_id}},
    }


class PageBlockBuilder:
    STAGES = ("link", "media", "summary", "notes")

    def build(self, page: BookmarkPage) -> List[Block]:
        blocks: List[Block] = []
        for stage in self.STAGES:
            stage_fn: Callable[[BookmarkPage], List[Block]] = getattr(self, f"_{stage}_blocks")
            blocks.extend(stage_fn(page))
        return blocks

    def _link_blocks(self, page: BookmarkPage) -> List[Block]:
        return [bookmark_block(page.url)] if page.url else []

    def _media_blocks(self, page: BookmarkPage) -> List[Block]:
        if page.source != SourceKind.SCREENSHOT:
            return []
        if page.upload_handle is not None:
            return [image_block(page.upload_handle.id)]
        return [paragraph_block(MISSING_IMAGE_TEXT)]

    def _summary_blocks(self, page: BookmarkPage) -> List[Block]:
        return [heading_block(SUMMARY_HEADING), paragraph_block(page.summary)]

    def _notes_blocks(self, page: BookmarkPage) -> List[Block]:
        if not page.notes:
            return []
        return [heading_block(NOTES_HEADING), paragraph_block(page.notes)]


def page_properties(page: BookmarkPage) -> Dict[str, Any]:
    return {
        "Title": {"title": rich_text(page.title)},
        "Tags": {"multi_select": [{"name": SOURCE_TAGS[page.source]}]},
    }
