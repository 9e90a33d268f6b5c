"""
Hierarchical agglomerative clustering of keyword records.

Single-linkage: the similarity of two clusters is the highest similarity
between any of their members. Clusters are merged greedily, most similar
pair first, until no pair reaches the similarity threshold.
"""

import logging
from typing import List, Sequence

import numpy as np

from .models import KeywordRecord
from .similarity import build_similarity_matrix

logger = logging.getLogger(__name__)


class HierarchicalClusterer:
    """
    Single-linkage agglomerative clusterer over a precomputed similarity matrix.

    Ties between equally similar cluster pairs go to the pair (i, j), i < j,
    that comes first in row-major order over the current cluster list. The
    merged cluster replaces both inputs at the end of that list, members of
    the lower-indexed cluster first.

    Args:
        similarity_threshold: Stop merging once the best pair is below this (default: 0.5)
    """

    def __init__(self, similarity_threshold: float = 0.5):
        self.similarity_threshold = similarity_threshold

        # Set after fit
        self.clusters_: List[List[int]] = None
        self.n_merges = 0

        logger.debug(f"Initialized HierarchicalClusterer: threshold={similarity_threshold}")

    def fit(self, similarity: np.ndarray) -> List[List[int]]:
        """
        Cluster items given their pairwise similarity matrix.

        Args:
            similarity: Symmetric (n, n) matrix, row i belonging to item i

        Returns:
            Partition of range(n) as lists of item indices, in formation order

        Raises:
            ValueError: If the matrix is not square
        """
        if similarity.ndim != 2 or similarity.shape[0] != similarity.shape[1]:
            raise ValueError(f"Similarity matrix must be square, got shape {similarity.shape}")

        n = similarity.shape[0]
        clusters = [[i] for i in range(n)]
        # Cluster-to-cluster linkage, kept aligned with `clusters`
        linkage = np.array(similarity, dtype=np.float64, copy=True)
        self.n_merges = 0

        while len(clusters) > 1:
            k = len(clusters)
            candidates = np.where(np.triu(np.ones((k, k), dtype=bool), 1), linkage, -1.0)

            # argmax returns the first maximum in row-major order
            i, j = divmod(int(np.argmax(candidates)), k)
            best = candidates[i, j]

            if best < self.similarity_threshold:
                break

            logger.debug(
                f"Merging clusters {i} and {j} (sizes {len(clusters[i])}, "
                f"{len(clusters[j])}) at similarity {best:.3f}"
            )

            merged_row = np.maximum(linkage[i], linkage[j])
            keep = [idx for idx in range(k) if idx != i and idx != j]

            next_linkage = np.empty((k - 1, k - 1), dtype=np.float64)
            next_linkage[:-1, :-1] = linkage[np.ix_(keep, keep)]
            next_linkage[-1, :-1] = merged_row[keep]
            next_linkage[:-1, -1] = merged_row[keep]
            next_linkage[-1, -1] = 1.0

            clusters = [clusters[idx] for idx in keep] + [clusters[i] + clusters[j]]
            linkage = next_linkage
            self.n_merges += 1

        self.clusters_ = clusters
        logger.debug(f"Clustering complete: {len(clusters)} clusters after {self.n_merges} merges")

        return clusters

    def cluster_records(self, records: Sequence[KeywordRecord]) -> List[List[KeywordRecord]]:
        """
        Build the similarity matrix for records and cluster them.

        Args:
            records: Records in caller order

        Returns:
            Clusters of records, each in formation order
        """
        if not records:
            self.clusters_ = []
            return []

        similarity = build_similarity_matrix(records)
        clusters = self.fit(similarity)

        return [[records[idx] for idx in cluster] for cluster in clusters]
