"""
Ingestion layer — event decoding, CSV reading and row mapping.

Submodules:
  events          — SNS / S3 trigger decoding and object-key unescaping
  csv_reader      — header skip and per-file ParseSuccess / ParseFailure result
  row_mapper      — strict CSV row → AuctionRecord mapping (live and history schemas)
  partition_key   — interval/year/month/day/hour extraction from object keys
  item_differ     — new item id discovery against the known-items set
"""
