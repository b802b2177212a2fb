"""
Catalog change events.

The host application sends these whenever a catalog entity changes:

    product_event.send(sender=Product, event_type='updated', product_id=product.pk)
    variant_event.send(sender=Variant, event_type='created', variant_ids=[v.pk for v in variants])
    collection_event.send(sender=Collection, event_type='deleted', collection_id=collection.pk)

`event_type` is 'created', 'updated' or 'deleted'. Receivers live in
cmssync.signals.handlers and are connected by CmsSyncConfig.ready().
"""

from django.dispatch import Signal

product_event = Signal()
variant_event = Signal()
collection_event = Signal()
