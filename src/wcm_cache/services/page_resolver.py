"""Page selection for a request path."""

from wcm_cache.entities import DirectorySnapshot, PageMatch
from wcm_cache.matcher import match


class PageResolver:
    """Selects the page answering a path from a directory snapshot.

    Every pattern is tried in snapshot order and the first match wins.
    No specificity ranking is applied: overrides must be registered
    ahead of the patterns they override.
    """

    def find_all(self, snapshot: DirectorySnapshot, offset_path: str) -> list[PageMatch]:
        """Collect every page whose pattern matches the path, in snapshot order."""
        matches = []
        for pattern, page in snapshot.entries:
            tokens = match(pattern, offset_path)
            if tokens is not None:
                matches.append(PageMatch(page=page, tokens=tokens, pattern=pattern))
        return matches

    def find_matching_page(self, snapshot: DirectorySnapshot, offset_path: str) -> PageMatch | None:
        """Pick the page for a path.

        Args:
            snapshot: The page directory snapshot
            offset_path: The request path

        Returns:
            The first match, or None if no pattern matches
        """
        matches = self.find_all(snapshot, offset_path)
        return matches[0] if matches else None
