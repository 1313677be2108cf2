def offset_for_last_lines(handle, *, last_lines: int, max_bytes: int = 32 * 1024 * 1024) -> int:
    """
    Byte offset where the last N complete lines of a source start.

    Notes:
    - Scans backwards from the current end in blocks, bounded by max_bytes. When the
      bound is hit before N lines are found, the first line start inside the scanned
      window is returned (the partial first line is skipped).
    - A trailing unterminated fragment is not counted; it is still part of the range
      after the returned offset and gets emitted once its terminator arrives.
    - last_lines <= 0 means "from the end".
    """
    size = int(handle.current_length())
    want = int(last_lines)
    if size <= 0 or want <= 0:
        return size

    block = 64 * 1024
    limit = max(1, int(max_bytes))
    pos = size
    scanned = 0
    seen = 0
    earliest = size
    while pos > 0 and scanned < limit:
        step = min(block, pos, limit - scanned)
        pos -= step
        chunk = handle.read_range(pos, step)
        if len(chunk) < step:
            break
        scanned += step
        i = len(chunk)
        while True:
            i = chunk.rfind(b"\n", 0, i)
            if i < 0:
                break
            seen += 1
            # Newline #1 ends the last line; #(N+1) ends the line before the wanted ones.
            if seen > want:
                return pos + i + 1
            earliest = pos + i + 1
    if pos == 0 and scanned >= size:
        return 0
    return earliest
