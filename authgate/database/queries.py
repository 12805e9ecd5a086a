"""GraphQL documents used by the account store"""

ACCOUNT_FRAGMENT = """
fragment accountFields on auth_accounts {
  id
  email
  new_email
  password_hash
  active
  default_role
  locale
  ticket
  ticket_expires_at
  mfa_enabled
  otp_secret
  account_roles {
    role
  }
  user {
    id
    display_name
    avatar_url
  }
}
"""

SELECT_ACCOUNT_BY_EMAIL = ACCOUNT_FRAGMENT + """
query selectAccountByEmail($email: citext!) {
  auth_accounts(where: {email: {_eq: $email}}) {
    ...accountFields
  }
}
"""

SELECT_ACCOUNT_BY_USER_ID = ACCOUNT_FRAGMENT + """
query selectAccountByUserId($user_id: uuid!) {
  auth_accounts(where: {user: {id: {_eq: $user_id}}}) {
    ...accountFields
  }
}
"""

SELECT_ACCOUNT_BY_TICKET = ACCOUNT_FRAGMENT + """
query selectAccountByTicket($ticket: String!, $now: timestamptz!) {
  auth_accounts(where: {_and: [{ticket: {_eq: $ticket}}, {ticket_expires_at: {_gt: $now}}]}) {
    ...accountFields
  }
}
"""

SELECT_ACCOUNT_BY_PROVIDER = ACCOUNT_FRAGMENT + """
query selectAccountByProvider($provider: String!, $provider_user_id: String!) {
  auth_account_providers(
    where: {_and: [{auth_provider: {_eq: $provider}}, {auth_provider_unique_id: {_eq: $provider_user_id}}]}
  ) {
    account {
      ...accountFields
    }
  }
}
"""

INSERT_ACCOUNT = ACCOUNT_FRAGMENT + """
mutation insertAccount($account: auth_accounts_insert_input!) {
  insert_auth_accounts(objects: [$account]) {
    affected_rows
    returning {
      ...accountFields
    }
  }
}
"""

UPDATE_ACCOUNT = ACCOUNT_FRAGMENT + """
mutation updateAccount($account_id: uuid!, $changes: auth_accounts_set_input!) {
  update_auth_accounts(where: {id: {_eq: $account_id}}, _set: $changes) {
    affected_rows
    returning {
      ...accountFields
    }
  }
}
"""

# The ticket and expiry are part of the filter, so two concurrent consumers
# cannot both see an affected row.
CONSUME_TICKET = ACCOUNT_FRAGMENT + """
mutation consumeTicket($ticket: String!, $now: timestamptz!, $changes: auth_accounts_set_input!) {
  update_auth_accounts(
    where: {_and: [{ticket: {_eq: $ticket}}, {ticket_expires_at: {_gt: $now}}]},
    _set: $changes
  ) {
    affected_rows
    returning {
      ...accountFields
    }
  }
}
"""

INSERT_ACCOUNT_PROVIDER = """
mutation insertAccountProvider($account_provider: auth_account_providers_insert_input!) {
  insert_auth_account_providers_one(object: $account_provider) {
    id
  }
}
"""

UPDATE_ACCOUNT_PROVIDER_TOKENS = """
mutation updateAccountProviderTokens(
  $provider: String!,
  $provider_user_id: String!,
  $changes: auth_account_providers_set_input!
) {
  update_auth_account_providers(
    where: {_and: [{auth_provider: {_eq: $provider}}, {auth_provider_unique_id: {_eq: $provider_user_id}}]},
    _set: $changes
  ) {
    affected_rows
  }
}
"""

INSERT_REFRESH_TOKEN = """
mutation insertRefreshToken($refresh_token: auth_refresh_tokens_insert_input!) {
  insert_auth_refresh_tokens_one(object: $refresh_token) {
    account_id
  }
}
"""

SELECT_ACCOUNT_BY_REFRESH_TOKEN = ACCOUNT_FRAGMENT + """
query selectAccountByRefreshToken($token_hash: String!, $now: timestamptz!) {
  auth_refresh_tokens(
    where: {_and: [{token_hash: {_eq: $token_hash}}, {expires_at: {_gt: $now}}]}
  ) {
    account {
      ...accountFields
    }
  }
}
"""

DELETE_REFRESH_TOKEN = """
mutation deleteRefreshToken($token_hash: String!) {
  delete_auth_refresh_tokens(where: {token_hash: {_eq: $token_hash}}) {
    affected_rows
  }
}
"""

DELETE_ACCOUNT_REFRESH_TOKENS = """
mutation deleteAccountRefreshTokens($account_id: uuid!) {
  delete_auth_refresh_tokens(where: {account_id: {_eq: $account_id}}) {
    affected_rows
  }
}
"""
