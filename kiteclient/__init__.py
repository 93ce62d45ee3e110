"""Trading API building blocks: HTTP envelopes, order, GTT, alert and market records, and a feed ticker."""

__version__ = "4.0.0"