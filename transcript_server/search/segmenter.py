"""Fixed-duration time windows over transcript segments."""

from collections.abc import Sequence

from transcript_server.models.transcript import TimeWindow, TranscriptSegment


def _close(index: int, start_ms: int, members: list[TranscriptSegment]) -> TimeWindow:
    return TimeWindow(
        index=index,
        start_ms=start_ms,
        end_ms=max(members[-1].end_ms, start_ms),
        text=" ".join(segment.text for segment in members),
        segments=list(members),
    )


def build_windows(segments: Sequence[TranscriptSegment], window_ms: int) -> list[TimeWindow]:
    """
    Partition ordered segments into contiguous, non-overlapping windows.

    The first window opens at the first segment's start. A segment starting at or
    past ``window_start + window_ms`` closes the current window and opens the next
    one at its own start, so boundaries come only from segment start times.
    Every segment lands in exactly one window. Empty input gives no windows; a
    non-positive ``window_ms`` puts everything in a single window.
    """
    if not segments:
        return []

    windows: list[TimeWindow] = []
    members: list[TranscriptSegment] = []
    window_start = segments[0].start_ms

    for segment in segments:
        if members and window_ms > 0 and segment.start_ms >= window_start + window_ms:
            windows.append(_close(len(windows), window_start, members))
            members = []
            window_start = segment.start_ms
        members.append(segment)

    windows.append(_close(len(windows), window_start, members))
    return windows
