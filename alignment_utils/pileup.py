import collections

from alignment_utils.cigar import Cigar, as_cigar


class InvalidAlleleStateError(RuntimeError):
    """ The reads assigned to alleles do not agree with the alleles asked about """


Allele = collections.namedtuple('Allele', ['name', 'bases'])

# A read's bases and how they align to the reference, starting at reference position start
AlignedBases = collections.namedtuple('AlignedBases', ['bases', 'cigar', 'start'])

# Index of each base in pileup base counts
base_index = {ord(b): i for i, b in enumerate('ACGT')}
base_index.update({ord(b): i for i, b in enumerate('acgt')})


class ReadAlleleAssignment():
    """ Which allele each read supports, looked up from either side.

    Reads are identified by name. Each read is assigned to exactly one allele
    and carries the bases and cigar of its best alignment.
    """

    def __init__(self):
        self._reads_by_allele = collections.OrderedDict()
        self._assignments = {}

    def add(self, read_name, allele, bases, cigar, start):
        if read_name in self._assignments:
            raise ValueError("Read %s is already assigned to %s" % (read_name, self._assignments[read_name][0]))
        if isinstance(bases, str):
            bases = bases.encode('ascii')
        self._assignments[read_name] = (allele, AlignedBases(bases, as_cigar(cigar), start))
        self._reads_by_allele.setdefault(allele, set()).add(read_name)

    def add_read(self, read, allele):
        """ Assign a pysam AlignedSegment, using its own alignment """
        self.add(read.query_name, allele, read.query_sequence, Cigar.from_tuples(read.cigartuples),
                 read.reference_start)

    def alleles(self):
        return list(self._reads_by_allele)

    def reads_for(self, allele):
        return set(self._reads_by_allele.get(allele, ()))

    def allele_for(self, read_name):
        return self._assignments[read_name][0]

    def aligned_bases(self, read_name):
        return self._assignments[read_name][1]

    def __len__(self):
        return len(self._assignments)

    def __contains__(self, read_name):
        return read_name in self._assignments


def _read_offset_at(aligned, position):
    """ Offset into the read bases aligned to reference position, or None """
    ref_pos = aligned.start
    read_pos = 0
    for elt in aligned.cigar:
        op = elt.op
        if op.consumes_ref and ref_pos <= position < ref_pos + elt.length:
            return read_pos + position - ref_pos if op.consumes_query else None
        if op.consumes_ref:
            ref_pos += elt.length
        if op.consumes_query:
            read_pos += elt.length
    return None


def count_bases_at_pileup_position(assignment, alleles, position):
    """ Counts of A, C, G and T among reads of the given alleles at a reference position.

    Args:
        assignment: ReadAlleleAssignment
        alleles: Collection of the alleles whose reads are counted
        position: Reference position, in the coordinates of the reads' start

    Returns:
        List of four counts in the order A, C, G, T
    """
    if assignment is None:
        raise ValueError("Read allele assignment cannot be None")
    if alleles is None:
        raise ValueError("Alleles cannot be None")
    if position < 0:
        raise ValueError("Position must be >= 0: %s" % position)
    if len(assignment) == 0:
        raise InvalidAlleleStateError("No reads are assigned to any of %s" % list(alleles))
    alleles = set(alleles)
    unknown = [allele for allele in assignment.alleles() if allele not in alleles]
    if unknown:
        raise InvalidAlleleStateError("Reads are assigned to alleles not in %s: %s" % (list(alleles), unknown))

    counts = [0, 0, 0, 0]
    for allele in assignment.alleles():
        for read_name in assignment.reads_for(allele):
            aligned = assignment.aligned_bases(read_name)
            offset = _read_offset_at(aligned, position)
            if offset is None or offset >= len(aligned.bases):
                continue
            index = base_index.get(aligned.bases[offset])
            if index is not None:
                counts[index] += 1
    return counts
