"""
Prediction pipeline components.

This package contains:
- shape_index: Shape index derivation from caliper measurements
- inputs: Batch inputs and pre-dispatch validation
- predictor: LLM-backed prediction client
- records: Analysis records and the session record store
- batch_runner: Concurrent batch coordinator
- expert: Grounded expert question answering
"""

__version__ = '1.0.0'
