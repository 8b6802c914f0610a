REDIS_PARTICIPANTS_KEY = "chat:participants" # sorted set, member = name, score = lastStatus (ms)
REDIS_MESSAGES_KEY = "chat:messages" # list of message ids in insertion order
REDIS_MESSAGE_KEY = "chat:message:{message_id}" # message id - message fields

# **Example `chat:message:{id}` hash fields**
# - `id` = uuid4 hex
# - `from` = sender name
# - `to` = recipient name or broadcast target ("Todos")
# - `text` = message body
# - `type` = message | private_message | status
# - `time` = HH:MM:SS of creation or last edit
