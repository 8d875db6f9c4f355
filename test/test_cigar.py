import itertools
import unittest

import pysam
from alignment_utils import Cigar, CigarElement, cigar_span, consolidate, has_zero_size_element, ref_consumed
from alignment_utils.cigar import cigar_ops, cigar_align_match, cigar_insertion, cigar_hard_clip
from alignment_utils.queries import num_aligned_bases_counting_soft_clips, num_hard_clipped_bases, \
    num_alignment_blocks


def element_combinations():
    """ All cigars of one to three elements of length 0 or 10 """
    elements = [CigarElement(size, op) for size in (0, 10) for op in cigar_ops]
    for n in (1, 2, 3):
        for combination in itertools.product(elements, repeat = n):
            yield Cigar(combination)


class Tests(unittest.TestCase):

    def test_cigar_len(self):
        self.assertEqual(cigar_span([(0, 10)]), 10)
        self.assertEqual(cigar_span([(1, 10)]), 0)
        self.assertEqual(cigar_span([(1, 100), (4, 100), (7, 10), (2, 10)]), 20)

    def test_ref_consumed_bad_tuple(self):
        with self.assertRaises(ValueError):
            ref_consumed((0, 10, 1))

    def test_pysam_codes(self):
        self.assertEqual(cigar_align_match.bam, pysam.CMATCH)
        self.assertEqual([op.bam for op in cigar_ops], list(range(9)))

    def test_operation_predicates(self):
        self.assertEqual("".join(op.op for op in cigar_ops if op.consumes_query), "MIS=X")
        self.assertEqual("".join(op.op for op in cigar_ops if op.consumes_ref), "MDN=X")
        self.assertEqual("".join(op.op for op in cigar_ops if op.is_clip), "SH")
        self.assertEqual("".join(op.op for op in cigar_ops if op.is_alignment_block), "M=X")

    def test_parse_and_format(self):
        for text in ["10M", "5S5M5=6N5X6D1P1H", "2M3I4M", "0M2M0M0I0M1M"]:
            with self.subTest(text = text):
                self.assertEqual(str(Cigar.parse(text)), text)
        self.assertEqual(Cigar.parse("*"), Cigar())
        self.assertEqual(Cigar.parse(""), Cigar())
        self.assertEqual(str(Cigar()), "*")
        cigar = Cigar.parse("3S2M1I")
        self.assertEqual(list(cigar), [CigarElement(3, cigar_ops[4]), CigarElement(2, cigar_align_match),
                                       CigarElement(1, cigar_insertion)])

    def test_parse_bad(self):
        for text in ["M", "10", "10Q", "10M5", "-1M", "5M 5M"]:
            with self.subTest(text = text):
                with self.assertRaises(ValueError):
                    Cigar.parse(text)

    def test_tuples(self):
        cigar = Cigar.parse("5S10M2D3M1H")
        self.assertEqual(cigar.to_tuples(), [(4, 5), (0, 10), (2, 2), (0, 3), (5, 1)])
        self.assertEqual(Cigar.from_tuples(cigar.to_tuples()), cigar)
        self.assertEqual(Cigar.from_tuples(None), Cigar())
        self.assertEqual(cigar_span(cigar.to_tuples()), cigar.reference_length)
        with self.assertRaises(ValueError):
            Cigar.from_tuples([(12, 1)])

    def test_lengths(self):
        cigar = Cigar.parse("5S5M5=6N5X6D1P1H")
        self.assertEqual(cigar.read_length, 20)
        self.assertEqual(cigar.reference_length, 27)
        cigar = Cigar.parse("2M3I4M")
        self.assertEqual(cigar.read_length, 9)
        self.assertEqual(cigar.reference_length, 6)

    def test_slice_and_hash(self):
        cigar = Cigar.parse("2M3I4M")
        self.assertEqual(cigar[1:], Cigar.parse("3I4M"))
        self.assertEqual(cigar[-1], CigarElement(4, cigar_align_match))
        self.assertEqual(len({Cigar.parse("2M"), Cigar.parse("2M"), Cigar.parse("1M1M")}), 2)

    def test_consolidate(self):
        tests = [("1M1M", "2M"),
                 ("2M", "2M"),
                 ("2M0M", "2M"),
                 ("0M2M", "2M"),
                 ("0M2M0M0I0M1M", "3M"),
                 ("2M0M1M", "3M"),
                 ("1M1M1M1D2M1M", "3M1D3M"),
                 ("6M6M6M", "18M"),
                 ("0M", "*")]
        for cigar, expected in tests:
            with self.subTest(cigar = cigar):
                self.assertEqual(consolidate(Cigar.parse(cigar)), Cigar.parse(expected))

    def test_consolidate_cut_elements(self):
        # Any three distinct operators, cut into single base elements, consolidate back
        elements = [CigarElement(i + 1, op) for i, op in enumerate(cigar_ops)]
        for ops in itertools.permutations(elements, 3):
            expected = Cigar(ops)
            cut = Cigar(CigarElement(1, elt.op) for elt in ops for _ in range(elt.length))
            with self.subTest(cigar = str(expected)):
                self.assertEqual(consolidate(cut), expected)

    def test_consolidate_idempotent(self):
        for cigar in element_combinations():
            once = consolidate(cigar)
            self.assertEqual(consolidate(once), once)
            self.assertEqual(once.read_length, cigar.read_length)
            self.assertEqual(once.reference_length, cigar.reference_length)

    def test_consolidate_returns_same_object(self):
        cigar = Cigar.parse("3M1D3M")
        self.assertIs(consolidate(cigar), cigar)

    def test_has_zero_size_element(self):
        for cigar in element_combinations():
            expected = any(elt.length == 0 for elt in cigar)
            self.assertEqual(has_zero_size_element(cigar), expected, str(cigar))

    def test_num_aligned_bases_counting_soft_clips(self):
        for cigar in element_combinations():
            expected = sum(elt.length for elt in cigar if elt.op.op in "M=XS")
            self.assertEqual(num_aligned_bases_counting_soft_clips(cigar), expected, str(cigar))
        self.assertEqual(num_aligned_bases_counting_soft_clips(None), 0)

    def test_num_hard_clipped(self):
        for cigar in element_combinations():
            expected = sum(elt.length for elt in cigar if elt.op is cigar_hard_clip)
            self.assertEqual(num_hard_clipped_bases(cigar), expected, str(cigar))
        self.assertEqual(num_hard_clipped_bases(None), 0)

    def test_num_alignment_blocks(self):
        tests = [("10M", 1),
                 ("10M10M", 1),
                 ("5M0M5=", 1),
                 ("5M1I5M", 2),
                 ("5S5M2D5X1I3=5S", 3),
                 ("0M10I", 0),
                 ("5M6N5M", 2),
                 ("*", 0)]
        for cigar, expected in tests:
            with self.subTest(cigar = cigar):
                self.assertEqual(num_alignment_blocks(Cigar.parse(cigar)), expected)
        self.assertEqual(num_alignment_blocks(None), 0)


if __name__ == '__main__':
    unittest.main()
