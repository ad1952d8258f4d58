"""
Fulfill Order Service

Marks open orders as processed in the order store and checkpoints proof of
fulfillment to a shared volume.
"""
