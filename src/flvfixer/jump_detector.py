"""
Segmentation and timestamp jump detection.

A recording that reconnected mid-file shows up either as an extra metadata
tag (a new embedded recording) or as a jump in the tag timestamps. This
module splits the tag index at metadata tags and, per segment, builds a
jump table: tag position -> timestamp correction in milliseconds, applied
cumulatively from that tag on.
"""

from collections import Counter

from .flv_scanner import StepOutcome, TagFlag, TagType

MINIMAL_TAGS_IN_SEGMENT = 2000
JUMP_THRESHOLD = 1000


class Segment:
    """A run of tags governed by one metadata tag, plus its jump table."""

    def __init__(self, index, tags):
        self.index = index
        self.tags = tags
        self.jump_table = {}
        self.audio_diff = 0
        self.video_diff = 0

    def __len__(self):
        return len(self.tags)

    @property
    def start_position(self):
        return self.tags[0].position

    @property
    def end_position(self):
        return self.tags[-1].position

    def __repr__(self):
        return (f"Segment(index={self.index}, tags={len(self.tags)}, "
                f"start={self.start_position}, jumps={len(self.jump_table)})")


def split_segments(tags):
    """
    Split a tag index into segments at every metadata tag after the first.

    Args:
        tags (list[TagRecord]): Tag index starting with a metadata tag.

    Returns:
        list[Segment]: Segments in file order; each starts with its metadata tag.
    """
    segments = []
    start = 0
    for i in range(1, len(tags)):
        if tags[i].tag_type == TagType.SCRIPT:
            segments.append(Segment(len(segments), tags[start:i]))
            start = i
    segments.append(Segment(len(segments), tags[start:]))
    return segments


def dominant_intervals(tags):
    """
    Find the most common timestamp step of the audio and video streams.

    Ties go to the step seen first.

    Returns:
        tuple: (audio_diff, video_diff) in milliseconds, 0 for a missing stream.
    """
    histograms = {TagType.AUDIO: Counter(), TagType.VIDEO: Counter()}
    last = {TagType.AUDIO: 0, TagType.VIDEO: 0}

    for tag in tags:
        if tag.tag_type not in histograms:
            continue
        histograms[tag.tag_type][tag.timestamp - last[tag.tag_type]] += 1
        last[tag.tag_type] = tag.timestamp

    def most_common(histogram):
        if not histogram:
            return 0
        return histogram.most_common(1)[0][0]

    return most_common(histograms[TagType.AUDIO]), most_common(histograms[TagType.VIDEO])


def _find_after(tags, index, tag_type):
    for i in range(index + 1, len(tags)):
        if tags[i].tag_type == tag_type and not tags[i].is_carried:
            return tags[i]
    return None


def _find_before(tags, index):
    before_audio = before_video = None
    for i in range(index - 1, -1, -1):
        tag = tags[i]
        if tag.is_carried:
            continue
        if before_audio is None and tag.tag_type == TagType.AUDIO:
            before_audio = tag
        elif before_video is None and tag.tag_type == TagType.VIDEO:
            before_video = tag
        if before_audio is not None and before_video is not None:
            break
    return before_audio, before_video


def compute_offset(tags, index, audio_diff, video_diff, segment_index=0):
    """
    Compute the timestamp correction for a jump at ``tags[index]``.

    The last audio and video tags before the jump are advanced by their
    dominant intervals (and kept ahead of each other, so the interleave
    order survives). Whichever stream lands later anchors the correction,
    measured against that stream's first tag at or after the jump. A
    segment carrying only one stream is corrected from that stream alone.

    Args:
        tags (list[TagRecord]): Tags of one segment.
        index (int): Index of the tag where the jump was seen.
        audio_diff (int): Dominant audio interval in ms.
        video_diff (int): Dominant video interval in ms.
        segment_index (int): Segment number, used in the warning.

    Returns:
        int: Correction to add to timestamps from the jump on, or 0 when
        the neighbouring tags cannot be found.
    """
    jumped = tags[index]
    if jumped.tag_type == TagType.AUDIO:
        after_audio = jumped
        after_video = _find_after(tags, index, TagType.VIDEO)
    else:
        after_video = jumped
        after_audio = _find_after(tags, index, TagType.AUDIO)

    before_audio, before_video = _find_before(tags, index)

    # A stream with no tags on either side of the jump is absent from the segment
    audio_absent = after_audio is None and before_audio is None
    video_absent = after_video is None and before_video is None
    if audio_absent and not video_absent and before_video is not None:
        return before_video.timestamp + video_diff - after_video.timestamp
    if video_absent and not audio_absent and before_audio is not None:
        return before_audio.timestamp + audio_diff - after_audio.timestamp

    if None in (after_audio, after_video, before_audio, before_video):
        print(f"Warning: could not compute timestamp offset for segment {segment_index}, "
              f"tag #{index} ({jumped.describe()}), using 0")
        return 0

    video_timestamp = before_video.timestamp + video_diff
    if video_timestamp <= before_audio.timestamp:
        video_timestamp = before_audio.timestamp + 1

    audio_timestamp = before_audio.timestamp + audio_diff
    if audio_timestamp <= before_video.timestamp:
        audio_timestamp = before_video.timestamp + 1

    if audio_timestamp > video_timestamp:
        return audio_timestamp - after_audio.timestamp
    return video_timestamp - after_video.timestamp


class JumpDetector:
    """Scans one segment for timestamp jumps and fills its jump table."""

    def __init__(self, segment, threshold=JUMP_THRESHOLD):
        self.segment = segment
        self.tags = segment.tags
        self.threshold = threshold
        self.reference = 0
        self.have_audio = False
        self.have_video = False
        self.found_jump = False

    def _header_is_isolated(self, index):
        # A header whose next non-header tag jumps away again belongs to neither side
        tag = self.tags[index]
        for i in range(index + 1, len(self.tags)):
            if not self.tags[i].is_header:
                return abs(self.tags[i].timestamp - tag.timestamp) > self.threshold
        return True

    def _step(self, index):
        tag = self.tags[index]
        reference = self.tags[self.reference]

        if abs(tag.timestamp - reference.timestamp) > self.threshold:
            self.found_jump = True

            if not (self.have_audio or self.have_video):
                # Nothing but headers so far: pull this tag back onto the previous time
                self.segment.jump_table[tag.position] = reference.timestamp - tag.timestamp
                return StepOutcome.CONTINUE

            if tag.is_header and self._header_is_isolated(index):
                tag.flags |= TagFlag.TIMESTAMP_CARRIED
                return StepOutcome.SUPPRESS_REFERENCE

            self.segment.jump_table[tag.position] = compute_offset(
                self.tags, index, self.segment.audio_diff, self.segment.video_diff,
                self.segment.index)

        if not tag.is_header:
            if tag.tag_type == TagType.AUDIO:
                self.have_audio = True
            elif tag.tag_type == TagType.VIDEO:
                self.have_video = True
        return StepOutcome.CONTINUE

    def run(self):
        """
        Scan the segment once.

        Returns:
            bool: True if any jump was found.
        """
        for index in range(1, len(self.tags)):
            if self._step(index) is StepOutcome.CONTINUE:
                self.reference = index
        return self.found_jump


def detect_jumps(segment, min_tags=MINIMAL_TAGS_IN_SEGMENT, threshold=JUMP_THRESHOLD):
    """
    Fill ``segment.jump_table``.

    Segments shorter than ``min_tags`` (about 30 seconds of capture) are
    left untouched.

    Returns:
        bool: True if the segment has timestamp jumps.
    """
    if len(segment) < min_tags:
        return False

    segment.audio_diff, segment.video_diff = dominant_intervals(segment.tags)
    return JumpDetector(segment, threshold).run()
