"""
Voter profile explorer.

Loads the TSE per-section voter profile file for one state and answers
"how many voters of profile P in scope S" queries.
"""
