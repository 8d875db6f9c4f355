import collections
import re

import pysam


class _CigarOperation():
    def __init__(self, op, bam, consumes_query, consumes_ref):
        """ Instantiate a cigar operation.

        Args:
            op: Operation (character e.g. 'M')
            bam: Numeric identifier e.g. 0 for 'M'
            consumes_query: Whether the operation consumes the query sequence (boolean)
            consumes_ref: Whether the operation consumes the reference sequence (boolean)
        """
        self.op = op
        self.bam = bam
        self.consumes_query = consumes_query
        self.consumes_ref = consumes_ref
        self.is_clip = op in 'SH'
        # M, = and X: a read base placed against a reference base
        self.is_alignment_block = consumes_query and consumes_ref

    def __repr__(self):
        return self.op

# The cigar operations
cigar_align_match = _CigarOperation('M', pysam.CMATCH, True, True)
cigar_insertion = _CigarOperation('I', pysam.CINS, True, False)
cigar_deletion = _CigarOperation('D', pysam.CDEL, False, True)
cigar_skip = _CigarOperation('N', pysam.CREF_SKIP, False, True)
cigar_soft_clip = _CigarOperation('S', pysam.CSOFT_CLIP, True, False)
cigar_hard_clip = _CigarOperation('H', pysam.CHARD_CLIP, False, False)
cigar_pad = _CigarOperation('P', pysam.CPAD, False, False)
cigar_seq_match = _CigarOperation('=', pysam.CEQUAL, True, True)
cigar_seq_mismatch = _CigarOperation('X', pysam.CDIFF, True, True)

# List of cigar operations
cigar_ops = [cigar_align_match,
             cigar_insertion,
             cigar_deletion,
             cigar_skip,
             cigar_soft_clip,
             cigar_hard_clip,
             cigar_pad,
             cigar_seq_match,
             cigar_seq_mismatch]

# Map of bam number to cigar operation
bam_to_cigar_element = {elt.bam: elt for elt in cigar_ops}

# Map of character to cigar operation
op_to_cigar_element = {elt.op: elt for elt in cigar_ops}

# Map of bam number to whether the operation consumes reference sequence
bam_to_consumes_ref = {elt.bam: elt.consumes_ref for elt in cigar_ops}

# Operations that open or extend an indel
indel_ops = (cigar_insertion, cigar_deletion)

_cigar_element_re = re.compile(r'(\d+)([MIDNSHP=X])')
_cigar_re = re.compile(r'^(\d+[MIDNSHP=X])*$')


class CigarElement(collections.namedtuple('CigarElement', ['length', 'op'])):
    """ A single run: length and _CigarOperation """
    __slots__ = ()

    def __str__(self):
        return "%d%s" % (self.length, self.op.op)


class Cigar():
    """ An immutable run-length alignment: an ordered sequence of CigarElements.

    Cigars compare and hash by value. The empty cigar is written '*'.
    """

    def __init__(self, elements=()):
        self.elements = tuple(elements)
        for elt in self.elements:
            if elt.length < 0:
                raise ValueError("Negative cigar element length: %s" % (elt,))

    @classmethod
    def parse(cls, text):
        """ Parse the textual encoding e.g. '10S5M1I20M' """
        if text in ('', '*'):
            return cls()
        if not _cigar_re.match(text):
            raise ValueError("Bad cigar: %s" % text)
        return cls(CigarElement(int(length), op_to_cigar_element[op])
                   for length, op in _cigar_element_re.findall(text))

    @classmethod
    def from_tuples(cls, cigar_tuples):
        """ Build a cigar from pysam style (bam, length) tuples; None is the empty cigar """
        if cigar_tuples is None:
            return cls()
        elements = []
        for cigar_tuple in cigar_tuples:
            if len(cigar_tuple) != 2 or cigar_tuple[0] not in bam_to_cigar_element:
                raise ValueError("Invalid cigar tuple: %s" % (cigar_tuple,))
            elements.append(CigarElement(cigar_tuple[1], bam_to_cigar_element[cigar_tuple[0]]))
        return cls(elements)

    def to_tuples(self):
        return [(elt.op.bam, elt.length) for elt in self.elements]

    @property
    def read_length(self):
        return sum(elt.length for elt in self.elements if elt.op.consumes_query)

    @property
    def reference_length(self):
        return sum(elt.length for elt in self.elements if elt.op.consumes_ref)

    def __len__(self):
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Cigar(self.elements[index])
        return self.elements[index]

    def __eq__(self, other):
        return isinstance(other, Cigar) and self.elements == other.elements

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.elements)

    def __str__(self):
        if not self.elements:
            return '*'
        return ''.join(str(elt) for elt in self.elements)

    def __repr__(self):
        return "Cigar('%s')" % self


def as_cigar(cigar):
    """ Accept a Cigar or its text form """
    if isinstance(cigar, Cigar):
        return cigar
    return Cigar.parse(cigar)


def _needs_consolidation(cigar):
    prev = None
    for elt in cigar:
        if elt.length == 0 or (prev is not None and prev.op is elt.op):
            return True
        prev = elt
    return False

def consolidate(cigar):
    """ Merge adjacent elements with the same operator and drop zero length elements.

    Returns the same cigar object when there is nothing to do.
    """
    if cigar is None:
        raise ValueError("Cigar cannot be None")
    if not _needs_consolidation(cigar):
        return cigar
    elements = []
    for elt in cigar:
        if elt.length == 0:
            continue
        if elements and elements[-1].op is elt.op:
            elements[-1] = CigarElement(elements[-1].length + elt.length, elt.op)
        else:
            elements.append(elt)
    return Cigar(elements)

def has_zero_size_element(cigar):
    return any(elt.length == 0 for elt in cigar)

# Amount of reference sequence consumed by a cigar element
def ref_consumed(cigar_tuple):
    if len(cigar_tuple) != 2:
        raise ValueError("Invalid cigar tuple: %s" % (cigar_tuple,))
    if bam_to_consumes_ref[cigar_tuple[0]]:
        return cigar_tuple[1]
    else:
        return 0

# Total amount of reference sequence consumed by a list of cigar tuples
# Tuples are (bam, length)
def cigar_span(cigar_tuples):
    return sum(map(ref_consumed, cigar_tuples))
