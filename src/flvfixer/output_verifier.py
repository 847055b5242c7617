"""
Post-repair check of written files.

Demuxes a repaired file with PyAV and counts, per stream, the packets
whose decode timestamp goes backwards. A correctly repaired file has no
such packets.
"""

import av


def verify_output(path):
    """
    Demux ``path`` and check that DTS values never decrease within a stream.

    Args:
        path (str): FLV file to check.

    Returns:
        dict: ``{stream_type: {'packets': int, 'non_monotonic': int,
        'last_dts_ms': float or None}}`` for every stream that produced
        packets.
    """
    results = {}
    last_dts = {}

    container = av.open(path)
    try:
        for packet in container.demux():
            if packet.dts is None:
                continue

            stream = packet.stream
            stats = results.setdefault(stream.type, {
                'packets': 0,
                'non_monotonic': 0,
                'last_dts_ms': None,
            })
            stats['packets'] += 1

            previous = last_dts.get(stream.index)
            if previous is not None and packet.dts < previous:
                stats['non_monotonic'] += 1
            last_dts[stream.index] = packet.dts

            if stream.time_base is not None:
                stats['last_dts_ms'] = float(packet.dts * stream.time_base * 1000)
    finally:
        container.close()

    return results


def format_verification(path, results):
    """Summarize the result of verify_output() as report lines."""
    if not results:
        return [f"✗ {path}: no packets could be demuxed"]

    ok = all(stats['non_monotonic'] == 0 for stats in results.values())
    lines = [f"{'✓' if ok else '✗'} {path}"]
    for stream_type, stats in sorted(results.items()):
        lines.append(f"    {stream_type}: {stats['packets']} packets, "
                     f"{stats['non_monotonic']} non-monotonic timestamps")
    return lines
