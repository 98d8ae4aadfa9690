"""
Rotation storage layer: scanning, classifying, linking and pruning backups.
"""
