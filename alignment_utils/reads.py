"""
The alignment helpers applied to reads from pysam (pysam.AlignedSegment).
"""

from alignment_utils import queries
from alignment_utils.cigar import Cigar
from alignment_utils.left_align import count_indel_elements, left_align_indel


def read_cigar(read):
    return Cigar.from_tuples(read.cigartuples)

def _read_bases(read):
    if read.query_sequence is None:
        return b''
    return read.query_sequence.encode('ascii')


def is_read_unmapped(read):
    """ Whether the read has no usable alignment: flagged unmapped, no reference or no start """
    if read.is_unmapped:
        return True
    return read.reference_id < 0 or read.reference_start < 0

def is_read_genome_loc_unmapped(read):
    """ Whether the read belongs to no reference sequence at all """
    return read.reference_id < 0


def num_aligned_bases_counting_soft_clips(read):
    return queries.num_aligned_bases_counting_soft_clips(read_cigar(read))

def num_hard_clipped_bases(read):
    return queries.num_hard_clipped_bases(read_cigar(read))

def num_alignment_blocks(read):
    return queries.num_alignment_blocks(read_cigar(read))

def calc_num_high_quality_soft_clips(read, threshold):
    quals = read.query_qualities
    if quals is None:
        return 0
    return queries.calc_num_high_quality_soft_clips(read_cigar(read), quals, threshold)


def get_mismatch_count(read, ref, ref_index, start_on_read, bases_to_read):
    """ Mismatches of the read against ref within a window of the read.

    See queries.count_mismatches. ref_index is the index into ref of the
    read's first aligned base.
    """
    return queries.count_mismatches(read_cigar(read), _read_bases(read), read.query_qualities,
                                    ref, ref_index, start_on_read, bases_to_read)


def left_align_read(read, ref, ref_offset=0):
    """ Left-aligned cigar for a read carrying a single indel.

    Args:
        read: pysam.AlignedSegment
        ref: Reference bases (bytes) covering the read
        ref_offset: Reference position of ref[0]

    Returns:
        The new Cigar, or None if the read is unmapped, does not have exactly
        one indel or is already left aligned. The read is not modified.
    """
    if is_read_unmapped(read) or read.cigartuples is None:
        return None
    cigar = read_cigar(read)
    if count_indel_elements(cigar) != 1:
        return None
    ref_index = read.reference_start - ref_offset
    if ref_index < 0:
        raise ValueError("Reference starting at %s does not cover read %s starting at %s"
                         % (ref_offset, read.query_name, read.reference_start))
    aligned = left_align_indel(cigar, ref, _read_bases(read), ref_index, 0)
    if aligned == cigar:
        return None
    return aligned
