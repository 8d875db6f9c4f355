import argparse
import logging

import pysam
from alignment_utils import count_indel_elements
from alignment_utils.reads import left_align_read, read_cigar


# Parse the command line
parser = argparse.ArgumentParser(description = """
bam_left_align.py

This script reads a bam file and an indexed fasta file of the reference and moves
each single indel to its leftmost equivalent position within tandem repeats.
It creates two outputs:

1. A bam file with the same records, with left aligned cigars where they changed
2. A log file with counts of records that were realigned and skipped
""")
parser.add_argument('--bam', action = 'store', dest = 'bam', required = True, help = 'Bam file')
parser.add_argument('--fasta', action = 'store', dest = 'fasta', required = True, help = 'Indexed fasta file of the reference')
parser.add_argument('--out_bam', action = 'store', dest = 'out_bam', required = True, help = 'Output bam file')
parser.add_argument('--min_mapq', action = 'store', dest = 'min_mapq', required = False, default = 0, help = 'Leave records with lower mapping quality unchanged')
parser.add_argument('--log', action = 'store', dest = 'log', required = True, help = 'Log file')
args = parser.parse_args()

# Simple args
bam_file = args.bam
fasta_file = args.fasta
out_bam = args.out_bam
min_mapq = int(args.min_mapq)

# Process log arg
logging.basicConfig(filename = args.log, filemode = "w", level = logging.INFO, format = "%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger("bam_left_align")

# Determine the number of mapped reads in the bam file
logger.info("Counting mapped and unmapped reads in %s...", bam_file)
n_mapped = int(pysam.view("-c", "-F", "4", bam_file))
n_unmapped = int(pysam.view("-c", "-f", "4", bam_file))
logger.info("There are %s mapped reads and %s unmapped reads.", "{:,}".format(n_mapped), "{:,}".format(n_unmapped))

# Open the bam file, the reference and the writer
bam_reader = pysam.AlignmentFile(bam_file, "rb")
fasta = pysam.FastaFile(fasta_file)
bam_writer = pysam.AlignmentFile(out_bam, "wb", header = bam_reader.header)

# Iterate through bam file and left align each record with a single indel
logger.info("Iterating through bam file and left aligning indels...")
i = 0
realigned = 0
skipped = 0
multiple_indels = 0
for rec in bam_reader.fetch(until_eof = True):
    i = i + 1
    if i % 1000000 == 0:
        logger.info("Finished %s records. Realigned %s. Skipped %s that were unmapped, secondary, supplementary or low quality.",
                    "{:,}".format(i), "{:,}".format(realigned), "{:,}".format(skipped))
    # Skip unmapped, secondary, supplementary (chimeric) and low quality alignments
    if rec.is_unmapped or rec.is_secondary or rec.is_supplementary or rec.mapping_quality < min_mapq:
        skipped = skipped + 1
        bam_writer.write(rec)
        continue
    if count_indel_elements(read_cigar(rec)) > 1:
        multiple_indels = multiple_indels + 1
    else:
        ref = fasta.fetch(rec.reference_name, rec.reference_start, rec.reference_end).upper().encode("ascii")
        cigar = left_align_read(rec, ref, rec.reference_start)
        if cigar is not None:
            logger.debug("%s: %s -> %s", rec.query_name, rec.cigarstring, cigar)
            rec.cigartuples = cigar.to_tuples()
            realigned = realigned + 1
    bam_writer.write(rec)
logger.info("Finished iterating through bam file.")
logger.info("Realigned %s records. Left %s records with more than one indel unchanged. Skipped %s records.",
            "{:,}".format(realigned), "{:,}".format(multiple_indels), "{:,}".format(skipped))

# Close the files
logger.info("Closing bam reader, reference and bam writer...")
bam_reader.close()
fasta.close()
bam_writer.close()

logger.info("All done.")
