import logging

from alignment_utils.cigar import Cigar, CigarElement, consolidate, indel_ops, cigar_deletion

logger = logging.getLogger(__name__)


def count_indel_elements(cigar):
    return sum(1 for elt in cigar if elt.op in indel_ops)


def _check_arguments(cigar, ref, read, ref_index, read_index):
    if cigar is None:
        raise ValueError("Cigar cannot be None")
    if ref is None or read is None:
        raise ValueError("Reference and read bases cannot be None")
    if ref_index < 0:
        raise ValueError("Reference index must be >= 0: %s" % ref_index)
    if read_index < 0:
        raise ValueError("Read index must be >= 0: %s" % read_index)


def _haplotype(cigar, indel_index, ref, read, ref_index, read_index):
    """ The reference with the indel at indel_index applied to it.

    Returns None when the indel starts past the end of the reference.
    """
    indel = cigar[indel_index]
    indel_length = indel.length
    ref_bases = 0
    for elt in cigar.elements[:indel_index]:
        if elt.op.consumes_query:
            read_index += elt.length
        if elt.op.consumes_ref:
            ref_index += elt.length
            ref_bases += elt.length

    # Very long indels can run off the end of the reference we were given
    if ref_bases + indel_length > len(ref):
        indel_length -= ref_bases + indel_length - len(ref)
    if ref_index > len(ref):
        return None

    if indel.op is cigar_deletion:
        return ref[:ref_index] + ref[ref_index + indel_length:]
    return ref[:ref_index] + read[read_index:read_index + indel_length] + ref[ref_index:]


def _shift_left(cigar, indel_index):
    """ Move the indel one base to the left.

    The element before the indel loses a base, which reappears right after the indel.
    The element before may be left with length zero.
    """
    before = cigar[indel_index - 1]
    elements = list(cigar.elements[:indel_index - 1])
    elements.append(CigarElement(before.length - 1, before.op))
    elements.append(cigar[indel_index])
    rest = list(cigar.elements[indel_index + 1:])
    if rest and rest[0].op is before.op:
        rest[0] = CigarElement(rest[0].length + 1, before.op)
    else:
        rest.insert(0, CigarElement(1, before.op))
    return Cigar(elements + rest)


def left_align_single_indel(cigar, ref, read, ref_index, read_index):
    """ Move the only indel in cigar as far left as the bases allow.

    A placement is equivalent when the reference with the indel applied is
    identical to the original one. Up to (indel length) consecutive
    non-equivalent moves are tried before giving up, so indels inside repeats
    whose unit is no longer than the indel are fully left-aligned.

    Args:
        cigar: Consolidated cigar with exactly one I or D element
        ref: Reference bases (bytes)
        read: Read bases (bytes)
        ref_index: Index into ref of the first reference base of the alignment
        read_index: Index into read of the first base of the cigar

    Returns:
        The left-aligned cigar, or cigar itself if the indel cannot move
    """
    _check_arguments(cigar, ref, read, ref_index, read_index)

    indel_indices = [i for i, elt in enumerate(cigar) if elt.op in indel_ops]
    if len(indel_indices) != 1:
        raise ValueError("Expected exactly one indel in %s" % cigar)
    indel_index = indel_indices[0]

    # Nothing to the left to trade places with
    if indel_index == 0 or not cigar[indel_index - 1].op.is_alignment_block:
        return cigar

    indel = cigar[indel_index]
    original = _haplotype(cigar, indel_index, ref, read, ref_index, read_index)
    if original is None:
        return cigar

    candidate = cigar
    attempts = 0
    shifts = 0
    max_shifts = cigar.reference_length
    while attempts < indel.length and shifts < max_shifts:
        before = candidate[indel_index - 1]
        # A deletion cannot become the first element of the alignment
        if before.length == 0 or (indel.op is cigar_deletion and before.length == 1):
            break
        candidate = _shift_left(candidate, indel_index)
        shifts += 1
        attempts += 1
        if _haplotype(candidate, indel_index, ref, read, ref_index, read_index) == original:
            cigar = consolidate(candidate)
            attempts = 0
    return cigar


def left_align_indel(cigar, ref, read, ref_index, read_index, tolerate_multiple_indels=True):
    """ Left-align the indel of an alignment carrying a single indel.

    Cigars without indels are returned unchanged. Cigars with more than one
    indel are returned unchanged when tolerate_multiple_indels is set and
    rejected with ValueError otherwise.
    """
    _check_arguments(cigar, ref, read, ref_index, read_index)
    cigar = consolidate(cigar)

    num_indels = count_indel_elements(cigar)
    if num_indels == 0:
        return cigar
    if num_indels == 1:
        return left_align_single_indel(cigar, ref, read, ref_index, read_index)
    if tolerate_multiple_indels:
        logger.debug("Not left aligning %s: %d indels", cigar, num_indels)
        return cigar
    raise ValueError("Cannot left align %s: it has %d indels" % (cigar, num_indels))
