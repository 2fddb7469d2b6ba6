"""
Core package: filter cache, hierarchy builder and sync coordination
for project-generation inclusion filters.
"""
