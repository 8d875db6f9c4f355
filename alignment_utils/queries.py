"""
Positional questions about a read aligned to a reference by a cigar.

Read and reference sequences are bytes; offsets are 0-based and relative to
the sequences passed in unless noted otherwise.
"""

import collections

from alignment_utils.cigar import consolidate, cigar_deletion, cigar_hard_clip, \
    cigar_insertion, cigar_seq_match, cigar_seq_mismatch, cigar_skip, cigar_soft_clip


# Bytes written into alignment byte arrays in place of read bases
DELETION_BASE = ord('D')
A_FOLLOWED_BY_INSERTION_BASE = 87
C_FOLLOWED_BY_INSERTION_BASE = 88
T_FOLLOWED_BY_INSERTION_BASE = 89
G_FOLLOWED_BY_INSERTION_BASE = 90

# Map of base to the marker used when an insertion follows it
followed_by_insertion_base = {ord('A'): A_FOLLOWED_BY_INSERTION_BASE,
                              ord('C'): C_FOLLOWED_BY_INSERTION_BASE,
                              ord('T'): T_FOLLOWED_BY_INSERTION_BASE,
                              ord('G'): G_FOLLOWED_BY_INSERTION_BASE}


MismatchCount = collections.namedtuple('MismatchCount', ['num_mismatches', 'mismatch_qualities', 'first_mismatch'])


def calc_num_different_bases(cigar, ref, read):
    """ Number of positions where read and ref disagree, each inserted or deleted base counting as one """
    if len(read) != cigar.read_length:
        raise ValueError("Mismatch between %d read bases and read length of cigar %s" % (len(read), cigar))
    if len(ref) < cigar.reference_length:
        raise ValueError("Reference of %d bases is shorter than the span of cigar %s" % (len(ref), cigar))
    count = 0
    ref_pos = 0
    read_pos = 0
    for elt in cigar:
        op = elt.op
        if op.is_alignment_block:
            for k in range(elt.length):
                if ref[ref_pos + k] != read[read_pos + k]:
                    count += 1
            ref_pos += elt.length
            read_pos += elt.length
        elif op is cigar_insertion:
            count += elt.length
            read_pos += elt.length
        elif op is cigar_deletion:
            count += elt.length
            ref_pos += elt.length
        elif op is cigar_soft_clip:
            read_pos += elt.length
        elif op is cigar_skip:
            ref_pos += elt.length
    return count


def calc_alignment_byte_array_offset(cigar, offset, is_deletion, alignment_start, ref_locus):
    """ Index into the alignment byte array of cigar for a read offset.

    Args:
        cigar: The read's cigar
        offset: Offset into the read bases, soft clips included. Ignored for deletions.
        is_deletion: Whether the position of interest is deleted in the read
        alignment_start: Reference position of the first aligned base
        ref_locus: Reference position of interest, used for deletions

    Offsets inside a leading soft clip map to 0 and offsets inside an insertion
    map to the position right after the bases preceding it.
    """
    pileup_offset = offset
    # Deleted positions have no read offset: work from the reference position
    if is_deletion:
        pileup_offset = ref_locus - alignment_start
        if len(cigar) > 0 and cigar[0].op is cigar_soft_clip:
            pileup_offset += cigar[0].length

    pos = 0
    alignment_pos = 0
    for elt in cigar:
        op = elt.op
        if op is cigar_insertion or op is cigar_soft_clip:
            pos += elt.length
            if pos >= pileup_offset:
                return alignment_pos
        elif op is cigar_deletion:
            if not is_deletion:
                alignment_pos += elt.length
            elif pos + elt.length - 1 >= pileup_offset:
                return alignment_pos + (pileup_offset - pos)
            else:
                pos += elt.length
                alignment_pos += elt.length
        elif op.is_alignment_block:
            if pos + elt.length - 1 >= pileup_offset:
                return alignment_pos + (pileup_offset - pos)
            pos += elt.length
            alignment_pos += elt.length
        # H, P and N do not move either position
    return alignment_pos


def read_to_alignment_byte_array(cigar, read):
    """ The read laid out along the reference span of cigar.

    Deleted and skipped reference positions hold DELETION_BASE. A base
    followed by an insertion is replaced by its *_FOLLOWED_BY_INSERTION_BASE
    marker. Soft clips and inserted bases are not included.
    """
    if len(read) != cigar.read_length:
        raise ValueError("Mismatch between %d read bases and read length of cigar %s" % (len(read), cigar))
    alignment = bytearray(cigar.reference_length)
    alignment_pos = 0
    read_pos = 0
    for elt in cigar:
        op = elt.op
        if op is cigar_insertion:
            if alignment_pos > 0:
                prev = alignment[alignment_pos - 1]
                alignment[alignment_pos - 1] = followed_by_insertion_base.get(prev, prev)
            read_pos += elt.length
        elif op is cigar_soft_clip:
            read_pos += elt.length
        elif op is cigar_deletion or op is cigar_skip:
            alignment[alignment_pos:alignment_pos + elt.length] = bytes([DELETION_BASE]) * elt.length
            alignment_pos += elt.length
        elif op.is_alignment_block:
            alignment[alignment_pos:alignment_pos + elt.length] = read[read_pos:read_pos + elt.length]
            alignment_pos += elt.length
            read_pos += elt.length
    return bytes(alignment)


def is_inside_deletion(cigar, offset):
    """ Whether the reference offset (0-based, from the alignment start) falls in a deletion """
    if cigar is None:
        raise ValueError("Cigar cannot be None")
    if offset < 0:
        return False
    ref_pos = 0
    for elt in cigar:
        if not elt.op.consumes_ref:
            continue
        if ref_pos <= offset < ref_pos + elt.length:
            return elt.op is cigar_deletion
        ref_pos += elt.length
    return False


def count_mismatches(cigar, read_bases, read_quals, ref, ref_index, start_on_read, bases_to_read):
    """ Count mismatches between read and reference within a window of the read.

    Args:
        cigar: The read's cigar
        read_bases: Read bases (bytes), soft clips included
        read_quals: Base qualities, or None
        ref: Reference bases (bytes)
        ref_index: Index into ref of the first aligned base of the read
        start_on_read: First read offset to consider, soft clips included
        bases_to_read: Number of read offsets to consider

    Soft clipped and inserted bases never count. Reference positions past the
    end of ref are ignored.

    Returns:
        MismatchCount(num_mismatches, mismatch_qualities, first_mismatch), where
        first_mismatch is the read offset of the first mismatch or None
    """
    if ref_index < 0:
        raise ValueError("Reference index must be >= 0: %s" % ref_index)
    if start_on_read < 0:
        raise ValueError("Start on read must be >= 0: %s" % start_on_read)
    if bases_to_read < 0:
        raise ValueError("Bases to read must be >= 0: %s" % bases_to_read)

    num_mismatches = 0
    mismatch_qualities = 0
    first_mismatch = None
    read_idx = 0
    end_on_read = start_on_read + bases_to_read - 1
    for elt in cigar:
        if read_idx > end_on_read:
            break
        op = elt.op
        if op.is_alignment_block:
            for j in range(elt.length):
                r = read_idx + j
                if r < start_on_read or r > end_on_read or ref_index + j >= len(ref):
                    continue
                if op is cigar_seq_match:
                    continue
                if op is cigar_seq_mismatch or read_bases[r] != ref[ref_index + j]:
                    num_mismatches += 1
                    if read_quals is not None:
                        mismatch_qualities += read_quals[r]
                    if first_mismatch is None:
                        first_mismatch = r
            ref_index += elt.length
            read_idx += elt.length
        elif op.consumes_query:
            read_idx += elt.length
        elif op.consumes_ref:
            ref_index += elt.length
    return MismatchCount(num_mismatches, mismatch_qualities, first_mismatch)


def calc_first_base_matching_reference_in_cigar(cigar, start):
    """ Reference offset of the first aligned (M, =, X) base at or after read offset start.

    Inserted and soft clipped bases are skipped, so a start inside an
    insertion resolves to the first aligned base after it.
    """
    if start >= cigar.read_length:
        raise ValueError("Start %s is not inside the read of %s" % (start, cigar))

    read_offset = 0
    ref_offset = 0
    for elt in cigar:
        op = elt.op
        if op.is_alignment_block:
            if read_offset + elt.length > start:
                return ref_offset + max(start - read_offset, 0)
            read_offset += elt.length
            ref_offset += elt.length
        elif op.consumes_query:
            read_offset += elt.length
        elif op.consumes_ref:
            ref_offset += elt.length
    raise ValueError("No aligned base at or after %s in %s" % (start, cigar))


def get_bases_covering_ref_interval(ref_start, ref_end, bases, bases_start_on_ref, cigar):
    """ The bases aligned to reference positions [ref_start, ref_end], inclusive.

    Insertions between the two ends are included. Returns None when either end
    is deleted in the alignment or is not covered by it.
    """
    if ref_start < 0 or ref_end < ref_start:
        raise ValueError("Bad start %s and/or end %s" % (ref_start, ref_end))
    if bases_start_on_ref < 0:
        raise ValueError("Bases start on reference must be >= 0: %s" % bases_start_on_ref)
    if bases is None:
        raise ValueError("Bases cannot be None")
    if len(bases) != cigar.read_length:
        raise ValueError("Mismatch between %d bases and read length of cigar %s" % (len(bases), cigar))

    ref_pos = bases_start_on_ref
    bases_pos = 0
    bases_start = None
    for elt in cigar:
        op = elt.op
        if op.is_alignment_block:
            if ref_pos <= ref_start < ref_pos + elt.length:
                bases_start = bases_pos + ref_start - ref_pos
            if ref_pos <= ref_end < ref_pos + elt.length:
                if bases_start is None:
                    return None
                return bases[bases_start:bases_pos + ref_end - ref_pos + 1]
            ref_pos += elt.length
            bases_pos += elt.length
        elif op.consumes_query:
            bases_pos += elt.length
        elif op.consumes_ref:
            # Either end inside a gap cannot be resolved
            if ref_pos <= ref_start < ref_pos + elt.length or ref_pos <= ref_end < ref_pos + elt.length:
                return None
            ref_pos += elt.length
    return None


def num_aligned_bases_counting_soft_clips(cigar):
    if cigar is None:
        return 0
    return sum(elt.length for elt in cigar if elt.op.is_alignment_block or elt.op is cigar_soft_clip)

def num_hard_clipped_bases(cigar):
    if cigar is None:
        return 0
    return sum(elt.length for elt in cigar if elt.op is cigar_hard_clip)

def num_alignment_blocks(cigar):
    """ Number of maximal runs of M, = and X elements """
    if cigar is None:
        return 0
    blocks = 0
    in_block = False
    for elt in consolidate(cigar):
        if elt.op.is_alignment_block:
            if not in_block:
                blocks += 1
            in_block = True
        else:
            in_block = False
    return blocks


def calc_num_high_quality_soft_clips(cigar, quals, threshold):
    """ Number of soft clipped bases with quality strictly above threshold """
    count = 0
    read_pos = 0
    for elt in cigar:
        if elt.op is cigar_soft_clip:
            count += sum(1 for q in quals[read_pos:read_pos + elt.length] if q > threshold)
        if elt.op.consumes_query:
            read_pos += elt.length
    return count
