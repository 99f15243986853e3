"""Entity store: create/read/update primitives over the relational schema.

Functions take an ``AsyncSession`` first. Entity-level writes commit;
stage-record writes only flush so the workflow service can commit them
together with the order status.
"""
