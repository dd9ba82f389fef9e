"""
Core data and query layer.

This package contains:
- records: the immutable per-section tally row
- bucket / index_tree: locality index (unbalanced BST with growable buckets)
- predicates: scope and profile filters
- query_engine: record store, indexed/linear counting with cross-check
- data_loader: download, extract and parse TSE files
- metadata_loader: option/label tables per profile category
- audit: audit facts for a query result
"""
