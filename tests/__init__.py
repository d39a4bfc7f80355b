"""
Test suite for rawadf.

This package contains:
- Unit tests for the header codec, track source policies, comparator,
  merge and split engines, settings and error handling
- Integration tests running the command line on temporary files
- Mock image builders and faulty streams
"""
