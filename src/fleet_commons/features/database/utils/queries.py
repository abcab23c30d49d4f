"""SQL constants for the PostgreSQL remote store."""

HEALTH_CHECK = "SELECT 1"

NOTIFY_PAYLOAD_LIMIT = 8000

# Publishes {table, type, new, old} on the channel passed as the trigger argument.
# pg_notify raises on payloads of NOTIFY_PAYLOAD_LIMIT bytes or more, which would
# abort the write; wide rows are published as {table, type, id, partial: true}.
NOTIFY_CHANGE_FUNCTION = """
    CREATE OR REPLACE FUNCTION fleet_notify_change() RETURNS trigger AS $$
    DECLARE
        payload text;
    BEGIN
        payload := json_build_object(
            'table', TG_TABLE_NAME,
            'type', TG_OP,
            'new', CASE WHEN TG_OP = 'DELETE' THEN NULL ELSE row_to_json(NEW) END,
            'old', CASE WHEN TG_OP = 'INSERT' THEN NULL ELSE row_to_json(OLD) END
        )::text;
        IF octet_length(payload) >= %(limit)d THEN
            payload := json_build_object(
                'table', TG_TABLE_NAME,
                'type', TG_OP,
                'id', CASE WHEN TG_OP = 'DELETE' THEN to_jsonb(OLD) -> 'id' ELSE to_jsonb(NEW) -> 'id' END,
                'partial', true
            )::text;
        END IF;
        PERFORM pg_notify(TG_ARGV[0], payload);
        RETURN NULL;
    END;
    $$ LANGUAGE plpgsql
""" % {"limit": NOTIFY_PAYLOAD_LIMIT}

DROP_CHANGE_TRIGGER = "DROP TRIGGER IF EXISTS fleet_notify_change ON {table}"

CREATE_CHANGE_TRIGGER = """
    CREATE TRIGGER fleet_notify_change
    AFTER INSERT OR UPDATE OR DELETE ON {table}
    FOR EACH ROW EXECUTE FUNCTION fleet_notify_change('{channel}')
"""
