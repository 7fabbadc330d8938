"""Entity types the dashboard owns in the shared keyspace."""

# Collections the dashboard front-end reads and writes.
DASHBOARD_COLLECTIONS = (
    'dishes',
    'orders',
    'expenses',
    'inventory',
    'ktv_rooms',
    'sign_bill_accounts',
    'hotel_rooms',
    'payment_methods',
    'partner_accounts',
    'system_settings',
    'system_dictionary',
    'users',
    'roles',
    'permissions',
)

# Point-in-time copies of the collections above, see `snapshots`.
SNAPSHOT_TYPE = 'snapshot'
