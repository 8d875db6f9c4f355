from alignment_utils.cigar import Cigar, CigarElement, consolidate, indel_ops, \
    cigar_align_match, cigar_deletion, cigar_hard_clip, cigar_seq_match, cigar_seq_mismatch


def add_cigar_elements(dest, pos, start, end, element):
    """ Append the part of element that overlaps [start, end] to dest.

    Args:
        dest: List of CigarElements to append to
        pos: Position of the first base of element on the axis start and end refer to
        start: First position to keep (inclusive)
        end: Last position to keep (inclusive)
        element: The CigarElement to clip

    Returns:
        pos advanced by the full length of element, whether or not anything was kept
    """
    length = min(pos + element.length - 1, end) - max(pos, start) + 1
    if length > 0:
        dest.append(CigarElement(length, element.op))
    return pos + element.length


def _trim_cigar(cigar, start, end, by_reference):
    elements = []
    pos = 0
    last_ref = max([i for i, elt in enumerate(cigar) if elt.op.consumes_ref], default = -1)
    for i, elt in enumerate(cigar):
        op = elt.op
        # Trailing insertions and soft clips hang off the last reference base
        if by_reference and i > last_ref and op.consumes_query and start <= pos == end + 1:
            elements.append(elt)
            continue
        # A deletion right after the last read base of the window still belongs to it
        if pos > end and (by_reference or op.consumes_query):
            break
        if op.is_alignment_block:
            pos = add_cigar_elements(elements, pos, start, end, elt)
        elif op.consumes_ref:
            # D and N
            if by_reference:
                pos = add_cigar_elements(elements, pos, start, end, elt)
            elif start <= pos <= end + 1:
                elements.append(elt)
        elif op.consumes_query:
            # I and S
            if not by_reference:
                pos = add_cigar_elements(elements, pos, start, end, elt)
            elif pos >= start:
                elements.append(elt)
        # H and P have no bases on either axis and are dropped
    return consolidate(Cigar(elements))

def trim_cigar_by_reference(cigar, start, end):
    """ Sub-alignment covering reference offsets [start, end], inclusive, relative to the alignment start.

    Insertions and soft clips are kept whole when they sit inside the window.
    """
    if start < 0:
        raise ValueError("Start must be >= 0: %s" % start)
    if end < start:
        raise ValueError("End %s is less than start %s" % (end, start))
    if end >= cigar.reference_length:
        raise ValueError("End %s is beyond the reference span of %s" % (end, cigar))
    return _trim_cigar(cigar, start, end, True)

def trim_cigar_by_bases(cigar, start, end):
    """ Sub-alignment covering read offsets [start, end], inclusive.

    Deletions are kept whole when they sit inside the window or right after its last base.
    """
    if start < 0:
        raise ValueError("Start must be >= 0: %s" % start)
    if end < start:
        raise ValueError("End %s is less than start %s" % (end, start))
    if end >= cigar.read_length:
        raise ValueError("End %s is beyond the read length of %s" % (end, cigar))
    return _trim_cigar(cigar, start, end, False)


def _merge_aligned(op12, op23):
    if op12 is cigar_seq_match and op23 is cigar_seq_match:
        return cigar_seq_match
    if cigar_seq_mismatch in (op12, op23) and cigar_align_match not in (op12, op23) and op12 is not op23:
        return cigar_seq_mismatch
    return cigar_align_match

def _compose_pair(op12, op23):
    # Both operations cover the same base of the intermediate sequence
    if not op12.consumes_query:
        # D or N: the base is missing from the first sequence
        return op12 if op23.is_alignment_block else None
    if op23.is_alignment_block:
        return _merge_aligned(op12, op23)
    # I or S: the base is missing from the third sequence
    return op23

def apply_cigar_to_cigar(first_to_second, second_to_third):
    """ Compose two alignments that share the second sequence.

    For example, with a read aligned to a haplotype (first_to_second) and the
    haplotype aligned to the reference (second_to_third), return the cigar of
    the read aligned directly to the reference.

    ref   : AC-GTA
    hap   : ACxGTA  2M1I3M
    read  : A--GTA  1M2D3M relative to hap
    result: 1M1D3M

    Both cigars are walked run by run along the shared sequence. The walk
    stops when either cigar runs out; trailing clips and insertions of the
    first and trailing deletions of the second are then appended.
    """
    firsts = [elt for elt in first_to_second if elt.length > 0]
    seconds = [elt for elt in second_to_third if elt.length > 0]
    elements = []
    i = j = 0
    used12 = used23 = 0
    while i < len(firsts) and j < len(seconds):
        elt12 = firsts[i]
        elt23 = seconds[j]
        left12 = elt12.length - used12
        left23 = elt23.length - used23
        if not elt12.op.consumes_ref:
            # I, S, H, P: nothing of the second sequence is consumed
            length, step12, step23 = left12, left12, 0
            op = elt12.op if elt12.op.consumes_query or elt12.op is cigar_hard_clip else None
        elif not elt23.op.consumes_query:
            # D, N, H, P: nothing of the second sequence is consumed
            length, step12, step23 = left23, 0, left23
            op = elt23.op if elt23.op.consumes_ref else None
        else:
            length = step12 = step23 = min(left12, left23)
            op = _compose_pair(elt12.op, elt23.op)
        if op is not None:
            elements.append(CigarElement(length, op))
        used12 += step12
        used23 += step23
        if used12 == elt12.length:
            i += 1
            used12 = 0
        if used23 == elt23.length:
            j += 1
            used23 = 0
    # A tail of either cigar that lies entirely off the shared sequence is kept
    rest12 = firsts[i:]
    if not any(elt.op.consumes_ref for elt in rest12):
        elements.extend(elt for elt in rest12 if elt.op.consumes_query or elt.op is cigar_hard_clip)
    rest23 = seconds[j:]
    if not any(elt.op.consumes_query for elt in rest23):
        elements.extend(elt for elt in rest23 if elt.op.consumes_ref)
    return consolidate(Cigar(elements))


def remove_trailing_deletions(cigar):
    """ Drop a final deletion. Leading deletions are left alone. """
    if len(cigar) == 0 or cigar[-1].op is not cigar_deletion:
        return cigar
    return cigar[:-1]

def starts_or_ends_with_insertion_or_deletion(cigar):
    """ Whether the first or last element of the consolidated cigar is an I or D """
    cigar = consolidate(cigar)
    if len(cigar) == 0:
        return False
    return cigar[0].op in indel_ops or cigar[-1].op in indel_ops
