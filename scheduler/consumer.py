import json
import logging
import pika
import time
from functools import partial
from typing import Dict, Any

from config.settings import get_database_config, get_rabbitmq_config
from scheduler.db.database import create_session_factory, init_db
from scheduler.db.repository import ScheduleRepository
from scheduler.exceptions import InvalidScheduleInput, SchedulerError
from scheduler.services.generator import generate_schedule
from scheduler.services.persistence import (
    get_class_assignments,
    get_current_schedule,
    save_schedule,
    teacher_lookup,
    update_class_assignments,
)
from scheduler.services.validator import check_schedule
from scheduler.utils.serialization import (
    parse_rows,
    schedule_payload,
    teacher_lookup_to_dict,
)

logger = logging.getLogger(__name__)


def _error(message: str) -> Dict[str, Any]:
    return {"status": "error", "message": message}


def _require_class_id(data: Dict[str, Any]) -> str:
    class_id = data.get("classId")
    if not class_id:
        raise InvalidScheduleInput("classId required")
    return str(class_id)


def process_generate_schedule(repository: ScheduleRepository, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Processes a schedule generation request.

    Args:
        data: {"classIds": [...] (optional), "subjectTeachers": {"taks": [...], ...} (optional)}

    Returns:
        Dictionary with the draft rows and the unmet cells
    """
    try:
        class_ids = data.get("classIds")
        if not isinstance(class_ids, list) or not class_ids:
            class_ids = None
        explicit_pools = data.get("subjectTeachers")
        if not isinstance(explicit_pools, dict):
            explicit_pools = None

        rows, unmet = generate_schedule(repository, class_ids, explicit_pools)

        payload = schedule_payload(rows)
        payload["unmet"] = [cell.to_dict() for cell in unmet]
        return {
            "status": "success",
            "message": "Schedule generated" if not unmet else f"Schedule generated with {len(unmet)} unmet cells",
            "data": payload,
        }

    except SchedulerError as e:
        logger.warning(f"Schedule generation rejected: {e}")
        return _error(str(e))
    except Exception as e:
        logger.error(f"Error generating schedule: {e}", exc_info=True)
        return _error(f"Error generating schedule: {str(e)}")


def process_check_schedule(repository: ScheduleRepository, data: Dict[str, Any]) -> Dict[str, Any]:
    """Validates proposed rows without persisting them"""
    try:
        rows = parse_rows(data.get("rows"))
        conflicts = check_schedule(repository, rows)
        valid = not conflicts
        return {
            "status": "success",
            "message": "Schedule is valid. Not persisted." if valid else "Schedule has conflicts.",
            "data": {
                "valid": valid,
                "conflicts": [conflict.to_dict() for conflict in conflicts],
                "conflictCount": len(conflicts),
            },
        }

    except SchedulerError as e:
        logger.warning(f"Schedule check rejected: {e}")
        return _error(str(e))
    except Exception as e:
        logger.error(f"Error checking schedule: {e}", exc_info=True)
        return _error(f"Error checking schedule: {str(e)}")


def process_save_schedule(repository: ScheduleRepository, data: Dict[str, Any]) -> Dict[str, Any]:
    """Validates and persists rows; fails with the first conflict's message"""
    try:
        rows = parse_rows(data.get("rows"))
        saved = save_schedule(repository, rows)
        return {
            "status": "success",
            "message": "Schedule saved successfully",
            "data": {"savedClasses": saved},
        }

    except SchedulerError as e:
        logger.warning(f"Schedule save rejected: {e}")
        return _error(str(e))
    except Exception as e:
        logger.error(f"Error saving schedule: {e}", exc_info=True)
        return _error(f"Error saving schedule: {str(e)}")


def process_get_current_schedule(repository: ScheduleRepository, data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        rows = get_current_schedule(repository)
        payload = schedule_payload(rows)
        payload["teacherLookup"] = teacher_lookup_to_dict(teacher_lookup(repository))
        return {"status": "success", "message": "Current schedule loaded", "data": payload}

    except Exception as e:
        logger.error(f"Error loading current schedule: {e}", exc_info=True)
        return _error(f"Error loading current schedule: {str(e)}")


def process_get_class_assignments(repository: ScheduleRepository, data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        assignments = get_class_assignments(repository, _require_class_id(data))
        return {"status": "success", "message": "Class assignments loaded", "data": {"assignments": assignments}}

    except SchedulerError as e:
        logger.warning(f"Class assignments lookup rejected: {e}")
        return _error(str(e))
    except Exception as e:
        logger.error(f"Error loading class assignments: {e}", exc_info=True)
        return _error(f"Error loading class assignments: {str(e)}")


def process_update_class_assignments(repository: ScheduleRepository, data: Dict[str, Any]) -> Dict[str, Any]:
    """Partially updates one class's subject teachers; omitted subjects are left unchanged"""
    try:
        class_id = _require_class_id(data)
        fields = data.get("assignments")
        if not isinstance(fields, dict):
            raise InvalidScheduleInput("assignments object required")

        assignments = update_class_assignments(repository, class_id, fields)
        return {
            "status": "success",
            "message": "Teacher assignments updated successfully",
            "data": {"assignments": assignments},
        }

    except SchedulerError as e:
        logger.warning(f"Class assignments update rejected: {e}")
        return _error(str(e))
    except Exception as e:
        logger.error(f"Error updating class assignments: {e}", exc_info=True)
        return _error(f"Error updating class assignments: {str(e)}")


COMMANDS = {
    "generate_schedule": process_generate_schedule,
    "check_schedule": process_check_schedule,
    "save_schedule": process_save_schedule,
    "get_current_schedule": process_get_current_schedule,
    "get_class_assignments": process_get_class_assignments,
    "update_class_assignments": process_update_class_assignments,
}


def handle_message(repository: ScheduleRepository, message: Dict[str, Any]) -> Dict[str, Any]:
    """Dispatches a decoded message to its command handler"""
    command = message.get("pattern")

    if command == "test_connection":
        return {"status": "success", "message": "Connection established"}

    handler = COMMANDS.get(command)
    if handler is None:
        return _error(f"Unknown command: {command}")

    logger.info(f"Processing {command} request")
    data = message.get("data")
    return handler(repository, data if isinstance(data, dict) else {})


def callback(ch, method, properties, body, repository: ScheduleRepository = None):
    """Message callback - processes the command and replies to reply_to"""
    correlation_id = properties.correlation_id

    try:
        logger.info(f"Received message: {correlation_id}")
        message = json.loads(body)
        result = handle_message(repository, message if isinstance(message, dict) else {})

        if properties.reply_to:
            ch.basic_publish(
                exchange="",
                routing_key=properties.reply_to,
                properties=pika.BasicProperties(correlation_id=correlation_id),
                body=json.dumps(result),
            )
            logger.info(f"Response sent for correlation_id: {correlation_id}")

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in message: {e}")

    except Exception as e:
        logger.error(f"Unexpected error in callback: {e}", exc_info=True)

    finally:
        try:
            ch.basic_ack(delivery_tag=method.delivery_tag)
        except Exception as e:
            logger.warning(f"Error acknowledging message: {e}")


def create_connection_and_channel(rabbitmq_config):
    """Create RabbitMQ connection and channel with proper configuration"""
    connection_params = pika.ConnectionParameters(
        host=rabbitmq_config["host"],
        port=rabbitmq_config["port"],
        virtual_host=rabbitmq_config["vhost"],
        credentials=pika.PlainCredentials(
            username=rabbitmq_config["username"], password=rabbitmq_config["password"]
        ),
        heartbeat=rabbitmq_config["heartbeat"],
        blocked_connection_timeout=300,
        socket_timeout=10,
        connection_attempts=rabbitmq_config["connection_attempts"],
        retry_delay=rabbitmq_config["retry_delay"],
    )

    connection = pika.BlockingConnection(connection_params)
    channel = connection.channel()

    # Configure channel
    queue_name = rabbitmq_config["queue_name"]
    channel.queue_declare(queue=queue_name, durable=True)
    channel.basic_qos(prefetch_count=1)

    return connection, channel, queue_name


def start_consumer():
    """Start the RabbitMQ consumer with reconnection logic"""
    rabbitmq_config = get_rabbitmq_config()

    session_factory = create_session_factory(get_database_config())
    init_db(session_factory)
    repository = ScheduleRepository(session_factory)

    max_reconnect_attempts = 10
    reconnect_delay = 5
    current_attempt = 0

    while current_attempt < max_reconnect_attempts:
        connection = None
        channel = None

        try:
            logger.info(
                f"Starting consumer (attempt {current_attempt + 1}/{max_reconnect_attempts})"
            )

            connection, channel, queue_name = create_connection_and_channel(
                rabbitmq_config
            )

            # Reset attempt counter on successful connection
            current_attempt = 0

            channel.basic_consume(
                queue=queue_name,
                on_message_callback=partial(callback, repository=repository),
            )

            logger.info(f"Consumer started, listening on queue: {queue_name}")
            channel.start_consuming()

        except pika.exceptions.StreamLostError as e:
            logger.error(
                f"Connection lost: {e}. Attempt {current_attempt + 1}/{max_reconnect_attempts}"
            )
            current_attempt += 1

        except pika.exceptions.AMQPConnectionError as e:
            logger.error(
                f"AMQP Connection error: {e}. Attempt {current_attempt + 1}/{max_reconnect_attempts}"
            )
            current_attempt += 1

        except KeyboardInterrupt:
            logger.info("Shutdown signal received, stopping consumer...")
            break

        except Exception as e:
            logger.error(
                f"Unexpected error: {e}. Attempt {current_attempt + 1}/{max_reconnect_attempts}",
                exc_info=True,
            )
            current_attempt += 1

        finally:
            try:
                if channel and not channel.is_closed:
                    channel.stop_consuming()
                    channel.close()
            except Exception as e:
                logger.warning(f"Error closing channel: {e}")

            try:
                if connection and not connection.is_closed:
                    connection.close()
            except Exception as e:
                logger.warning(f"Error closing connection: {e}")

        if current_attempt < max_reconnect_attempts:
            logger.info(f"Reconnecting in {reconnect_delay} seconds...")
            time.sleep(reconnect_delay)
            # Exponential backoff with max delay of 60 seconds
            reconnect_delay = min(reconnect_delay * 1.5, 60)

    if current_attempt >= max_reconnect_attempts:
        logger.error(
            f"Max reconnection attempts ({max_reconnect_attempts}) reached. Exiting."
        )


if __name__ == "__main__":
    start_consumer()
