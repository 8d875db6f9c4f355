from alignment_utils.cigar import Cigar, CigarElement, consolidate, has_zero_size_element, \
    ref_consumed, cigar_span
from alignment_utils.algebra import add_cigar_elements, apply_cigar_to_cigar, trim_cigar_by_bases, \
    trim_cigar_by_reference, remove_trailing_deletions, starts_or_ends_with_insertion_or_deletion
from alignment_utils.left_align import left_align_indel, left_align_single_indel, count_indel_elements
from alignment_utils.queries import DELETION_BASE, A_FOLLOWED_BY_INSERTION_BASE, C_FOLLOWED_BY_INSERTION_BASE, \
    T_FOLLOWED_BY_INSERTION_BASE, G_FOLLOWED_BY_INSERTION_BASE, MismatchCount, \
    calc_num_different_bases, calc_alignment_byte_array_offset, read_to_alignment_byte_array, \
    is_inside_deletion, count_mismatches, calc_first_base_matching_reference_in_cigar, \
    get_bases_covering_ref_interval, num_aligned_bases_counting_soft_clips, num_hard_clipped_bases, \
    num_alignment_blocks, calc_num_high_quality_soft_clips
from alignment_utils.pileup import Allele, AlignedBases, ReadAlleleAssignment, InvalidAlleleStateError, \
    count_bases_at_pileup_position
