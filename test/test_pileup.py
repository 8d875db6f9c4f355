import unittest

from alignment_utils import Allele, Cigar, InvalidAlleleStateError, ReadAlleleAssignment, \
    count_bases_at_pileup_position


REF = Allele("ref", b"C")
ALT = Allele("alt", b"T")


def assignment_of(reads):
    assignment = ReadAlleleAssignment()
    for name, allele, bases, cigar, start in reads:
        assignment.add(name, allele, bases, cigar, start)
    return assignment


class Tests(unittest.TestCase):

    def test_counts(self):
        tests = [
            # single read
            ([("r1", REF, "ACGT", "4M", 1)],
             [[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]]),
            # reads on both alleles, one with a deletion
            ([("r1", REF, "ACGT", "4M", 1),
              ("r2", ALT, "ACTT", "4M", 1),
              ("r3", ALT, "AGT", "1M1D2M", 1)],
             [[3, 0, 0, 0], [0, 2, 0, 0], [0, 0, 2, 1], [0, 0, 0, 3]]),
            # inserted and soft clipped bases sit between reference positions
            ([("r1", REF, "AGGCGT", "1M2I3M", 1),
              ("r2", REF, "TTCGT", "2S3M", 2)],
             [[1, 0, 0, 0], [0, 2, 0, 0], [0, 0, 2, 0], [0, 0, 0, 2]]),
            # lower case bases count, N does not
            ([("r1", ALT, "acNt", "4M", 1),
              ("r2", REF, "ANNT", "4M", 1)],
             [[2, 0, 0, 0], [0, 1, 0, 0], [0, 0, 0, 0], [0, 0, 0, 2]])]
        for reads, expected in tests:
            assignment = assignment_of(reads)
            for position, counts in enumerate(expected, 1):
                with self.subTest(reads = reads, position = position):
                    self.assertEqual(count_bases_at_pileup_position(assignment, [REF, ALT], position), counts)

    def test_positions_outside_reads(self):
        assignment = assignment_of([("r1", REF, "ACGT", "4M", 1)])
        for position in (0, 5, 100):
            self.assertEqual(count_bases_at_pileup_position(assignment, [REF, ALT], position), [0, 0, 0, 0])

    def test_invalid_allele_state(self):
        with self.assertRaises(InvalidAlleleStateError):
            count_bases_at_pileup_position(ReadAlleleAssignment(), [REF, ALT], 1)
        assignment = assignment_of([("r1", REF, "ACGT", "4M", 1),
                                    ("r2", ALT, "ACTT", "4M", 1)])
        with self.assertRaises(InvalidAlleleStateError):
            count_bases_at_pileup_position(assignment, [REF], 1)

    def test_bad_arguments(self):
        assignment = assignment_of([("r1", REF, "ACGT", "4M", 1)])
        with self.assertRaises(ValueError):
            count_bases_at_pileup_position(None, [REF], 1)
        with self.assertRaises(ValueError):
            count_bases_at_pileup_position(assignment, None, 1)
        with self.assertRaises(ValueError):
            count_bases_at_pileup_position(assignment, [REF], -1)

    def test_assignment_lookups(self):
        assignment = assignment_of([("r1", REF, "ACGT", "4M", 1),
                                    ("r2", ALT, "ACTT", "4M", 1),
                                    ("r3", ALT, b"AGT", Cigar.parse("1M1D2M"), 1)])
        self.assertEqual(len(assignment), 3)
        self.assertIn("r2", assignment)
        self.assertNotIn("r4", assignment)
        self.assertEqual(assignment.alleles(), [REF, ALT])
        self.assertEqual(assignment.reads_for(ALT), {"r2", "r3"})
        self.assertEqual(assignment.reads_for(Allele("other", b"G")), set())
        self.assertEqual(assignment.allele_for("r3"), ALT)
        aligned = assignment.aligned_bases("r1")
        self.assertEqual(aligned.bases, b"ACGT")
        self.assertEqual(aligned.cigar, Cigar.parse("4M"))
        self.assertEqual(aligned.start, 1)
        with self.assertRaises(ValueError):
            assignment.add("r1", ALT, "ACGT", "4M", 1)


if __name__ == '__main__':
    unittest.main()
